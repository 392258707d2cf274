"""Lookups a client makes against its replica of the game tables."""

from __future__ import annotations

from typing import Optional

from solarance.database import Database
from solarance.models import Identity, Player, StellarObjectTransform
from solarance.vector import Vec2

TRANSFORM_NOT_FOUND = "Could not find transform, even low-rez."


class TransformNotFound(LookupError):
    """Raised when an object has neither a high- nor a low-resolution transform."""


def get_transform(db: Database, sobj_id: int) -> StellarObjectTransform:
    """Return the high-resolution transform of ``sobj_id``, else the low-resolution one."""
    transform = db.stellar_object_hi_res.find(sobj_id)
    if transform is None:
        transform = db.stellar_object_low_res.find(sobj_id)
    if transform is None:
        raise TransformNotFound(TRANSFORM_NOT_FOUND)
    return transform


def get_controlled_stellar_object(db: Database, identity: Identity) -> Optional[int]:
    """Return the id of the stellar object ``identity`` controls, if any."""
    controlled = db.player_controlled_stellar_object.find(identity)
    return None if controlled is None else controlled.controlled_sobj_id


def get_player(db: Database, identity: Identity) -> Optional[Player]:
    return db.player.find(identity)


def get_player_sobj_id(db: Database, identity: Identity) -> Optional[int]:
    """Return the controlled object id of the player ``identity``, if both exist."""
    player = get_player(db, identity)
    if player is None:
        return None
    return get_controlled_stellar_object(db, player.identity)


def get_player_transform(db: Database, identity: Identity) -> Optional[StellarObjectTransform]:
    sobj_id = get_player_sobj_id(db, identity)
    if sobj_id is None:
        return None
    try:
        return get_transform(db, sobj_id)
    except TransformNotFound:
        return None


def get_player_transform_vec2(db: Database, identity: Identity, default: Vec2) -> Vec2:
    """Return the player's ship position, or ``default`` when it is unknown."""
    transform = get_player_transform(db, identity)
    return default if transform is None else transform.to_vec2()