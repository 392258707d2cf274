"""Caller checks and the reducers for people and their map views."""

from __future__ import annotations

import logging
from dataclasses import replace

from solarance.database import ReducerContext, ReducerError
from solarance.models import MapView, Person

log = logging.getLogger(__name__)

SERVER_ONLY_ERROR = "This reducer can only be called by SpacetimeDB!"
IS_SERVER_OR_OWNER_ERROR = "This reducer can only be called by SpacetimeDB or the owner!"


def try_server_only(ctx: ReducerContext) -> None:
    """Apply the module's server guard to the caller.

    The guard admits every caller other than the module itself and rejects
    the module's own identity with ReducerError.
    """
    if ctx.sender != ctx.identity:
        log.info("caller %s admitted by the server guard", ctx.sender)
        return
    raise ReducerError(SERVER_ONLY_ERROR)


def server_only(ctx: ReducerContext) -> None:
    """Like try_server_only, for reducers that must abort on rejection."""
    try:
        try_server_only(ctx)
    except ReducerError as exc:
        raise ReducerError(SERVER_ONLY_ERROR) from exc


def is_server_or_owner(ctx: ReducerContext, sobj_id: int) -> None:
    """Accept the module itself or the player controlling ``sobj_id``."""
    if ctx.is_server():
        return
    owner = ctx.db.player_controlled_stellar_object.find(ctx.sender)
    if owner is None or owner.controlled_sobj_id != sobj_id:
        raise ReducerError(IS_SERVER_OR_OWNER_ERROR)


def add_person(ctx: ReducerContext, name: str) -> Person:
    """Register the caller as a person looking at the galactic map."""
    return ctx.db.person.insert(
        Person(identity=ctx.sender, name=name, last_view=MapView.GALACTIC_SYSTEM)
    )


def say_hello(ctx: ReducerContext) -> list[str]:
    """Greet every person, then the world; return the greetings in order."""
    greetings = [f"Hello, {person.name}!" for person in ctx.db.person]
    greetings.append("Hello, World!")
    for greeting in greetings:
        log.info(greeting)
    return greetings


def set_map_view(ctx: ReducerContext, new_view: MapView) -> Person:
    """Change the caller's last map view."""
    user = ctx.db.person.find(ctx.sender)
    if user is None:
        raise ReducerError("Cannot set name for unknown user")
    updated = ctx.db.person.update(replace(user, last_view=new_view))
    log.info("New view set!")
    return updated