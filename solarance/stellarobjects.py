"""Reducers that create and steer stellar objects, and visibility rules."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Optional

from solarance.access import is_server_or_owner, server_only
from solarance.database import Database, ReducerContext, ReducerError
from solarance.models import (
    Identity,
    Player,
    PlayerControlledStellarObject,
    StellarObject,
    StellarObjectControllerTurnLeft,
    StellarObjectKind,
    StellarObjectPlayerWindow,
    StellarObjectTransform,
)
from solarance.vector import Vec2

log = logging.getLogger(__name__)

WINDOW_SIZE = 4000.0
WINDOW_MARGIN = 2000.0
MAX_ACCELERATION = 2.0
MAX_SPEED = 100.0
DEFAULT_USERNAME = "GalaxyCr8r"


def create_stellar_object_player_window_for(
    ctx: ReducerContext, sobj_id: int
) -> Optional[StellarObjectPlayerWindow]:
    """Create the view window for the player controlling ``sobj_id``, if any."""
    owner = ctx.db.player_controlled_stellar_object.find_by("controlled_sobj_id", sobj_id)
    if owner is None:
        log.info("Couldn't find owning player to create player window")
        return None
    return ctx.db.stellar_object_player_window.insert(
        StellarObjectPlayerWindow(
            identity=owner.identity,
            sobj_id=sobj_id,
            window=WINDOW_SIZE,
            margin=WINDOW_MARGIN,
            tl_x=-WINDOW_MARGIN,
            tl_y=-WINDOW_MARGIN,
            br_x=WINDOW_MARGIN,
            br_y=WINDOW_MARGIN,
        )
    )


def create_turn_left_controller_for(ctx: ReducerContext, sobj_id: int) -> bool:
    """Toggle the turn-left controller; return True if one now exists."""
    table = ctx.db.stellar_object_controller_turn_left
    if table.find(sobj_id) is not None:
        table.delete(sobj_id)
        log.info("Deleted controller #%s", sobj_id)
        return False
    controller = table.insert(StellarObjectControllerTurnLeft(sobj_id=sobj_id))
    log.info("Created controller #%s", controller.sobj_id)
    return True


def update_object_transform(ctx: ReducerContext, transform: StellarObjectTransform) -> None:
    """Set an object's internal transform, creating it if needed."""
    table = ctx.db.stellar_object_internal
    if table.find(transform.sobj_id) is not None:
        table.update(transform)
    else:
        table.insert(transform)


def create_stellar_object(
    ctx: ReducerContext,
    kind: StellarObjectKind,
    sector_id: int,
    transform: StellarObjectTransform,
    forward_velocity: float,
) -> None:
    """Guarded reducer form of create_stellar_object_internal."""
    server_only(ctx)
    create_stellar_object_internal(ctx, kind, sector_id, transform, forward_velocity)


def create_stellar_object_random(ctx: ReducerContext, sector_id: int) -> None:
    """Create a ship at a random position and heading in ``sector_id``."""
    server_only(ctx)
    create_stellar_object(
        ctx,
        StellarObjectKind.SHIP,
        sector_id,
        StellarObjectTransform(
            sobj_id=0,
            x=ctx.rng.uniform(0.0, 1024.0),
            y=ctx.rng.uniform(0.0, 512.0),
            rotation_radians=ctx.rng.uniform(-math.pi, math.pi),
        ),
        0.0,
    )


def update_stellar_object_velocity(
    ctx: ReducerContext, velocity: StellarObjectTransform
) -> StellarObjectTransform:
    """Set an object's velocity, limiting acceleration and top speed."""
    is_server_or_owner(ctx, velocity.sobj_id)
    previous = ctx.db.stellar_object_velocity.find(velocity.sobj_id)
    if previous is None:
        raise ReducerError("Stellar object not found!")

    updated = velocity
    delta = velocity.to_vec2() - previous.to_vec2()
    if delta.length() > MAX_ACCELERATION:
        updated = updated.from_vec2(previous.to_vec2() + delta.normalize() * MAX_ACCELERATION)
    if updated.to_vec2().length() > MAX_SPEED:
        updated = updated.from_vec2(updated.to_vec2().normalize() * MAX_SPEED)

    return ctx.db.stellar_object_velocity.update(updated)


def create_stellar_object_internal(
    ctx: ReducerContext,
    kind: StellarObjectKind,
    sector_id: int,
    transform: StellarObjectTransform,
    forward_velocity: float,
) -> StellarObject:
    """Create an object with its internal transform and forward velocity."""
    sobj = ctx.db.stellar_object.try_insert(StellarObject(id=0, kind=kind, sector_id=sector_id))
    if sobj is None:
        raise ReducerError("Failed to create stellar object!")
    ctx.db.stellar_object_internal.insert(replace(transform, sobj_id=sobj.id))
    velocity = StellarObjectTransform(sobj_id=sobj.id).from_vec2(
        Vec2.from_angle(transform.rotation_radians) * forward_velocity
    )
    ctx.db.stellar_object_velocity.insert(velocity)
    log.info("Created stellar object #%s!", sobj.id)
    return sobj


def create_player_controlled_ship(ctx: ReducerContext, identity: Identity) -> None:
    """Create a player for ``identity`` and a ship that player controls."""
    ctx.db.player.insert(Player(identity=identity, username=DEFAULT_USERNAME))
    try:
        ship = create_stellar_object_internal(
            ctx,
            StellarObjectKind.SHIP,
            0,
            StellarObjectTransform(sobj_id=0, x=64.0, y=64.0, rotation_radians=0.0),
            0.0,
        )
    except ReducerError as exc:
        raise ReducerError("Failed to create ship!") from exc
    ctx.db.player_controlled_stellar_object.insert(
        PlayerControlledStellarObject(
            identity=identity, controlled_sobj_id=ship.id, sector_id=ship.sector_id
        )
    )


def visible_stellar_objects(db: Database, identity: Identity) -> list[StellarObject]:
    """Objects in the sector of the ship ``identity`` controls."""
    controlled = db.player_controlled_stellar_object.find(identity)
    if controlled is None:
        return []
    return [obj for obj in db.stellar_object if obj.sector_id == controlled.sector_id]


def visible_hi_res(db: Database, identity: Identity) -> list[StellarObjectTransform]:
    """High-resolution transforms strictly inside the player's window."""
    window = db.stellar_object_player_window.find(identity)
    if window is None:
        return []
    return [
        row
        for row in db.stellar_object_hi_res
        if window.tl_x < row.x < window.br_x and window.tl_y < row.y < window.br_y
    ]


def visible_low_res(db: Database, identity: Identity) -> list[StellarObjectTransform]:
    """Low-resolution transforms on or outside the player's window."""
    window = db.stellar_object_player_window.find(identity)
    if window is None:
        return []
    return [
        row
        for row in db.stellar_object_low_res
        if row.x <= window.tl_x
        or row.y <= window.tl_y
        or row.x >= window.br_x
        or row.y >= window.br_y
    ]