"""Steering the player's ship from key presses, and the debug summary."""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import replace
from typing import Callable, Iterable, Optional

from solarance.database import Database, ReducerError
from solarance.models import Identity, StellarObjectTransform
from solarance.queries import (
    TransformNotFound,
    get_controlled_stellar_object,
    get_player,
    get_player_sobj_id,
    get_transform,
)
from solarance.vector import Vec2

log = logging.getLogger(__name__)

TURN_STEP = math.pi * 0.01337
BRAKE_FACTOR = 0.75
THRUST_SPEED = 200.0


class Key(enum.Enum):
    RIGHT = "Right"
    LEFT = "Left"
    UP = "Up"
    DOWN = "Down"
    W = "W"
    A = "A"
    S = "S"
    D = "D"


class ControlError(Exception):
    """Raised when the player's ship cannot be steered."""


Submit = Callable[[StellarObjectTransform], object]


def control_player_ship(
    db: Database,
    identity: Identity,
    pressed: Iterable[Key],
    submit: Submit,
) -> Optional[StellarObjectTransform]:
    """Turn, brake or thrust the player's ship for the keys held down.

    The new velocity is handed to ``submit`` and returned; None is returned
    when no steering key is held.
    """
    keys = frozenset(pressed)
    sobj_id = get_player_sobj_id(db, identity)
    if sobj_id is None:
        raise ControlError("Player doesn't control a stellar object yet!")
    velocity = db.stellar_object_velocity.find(sobj_id)
    if velocity is None:
        raise ControlError("Player's controlled object doesn't have a velocity table entry!")

    original = velocity.to_vec2()
    changed = False
    if keys & {Key.RIGHT, Key.D}:
        velocity = replace(velocity, rotation_radians=velocity.rotation_radians + TURN_STEP)
        changed = True
    if keys & {Key.LEFT, Key.A}:
        velocity = replace(velocity, rotation_radians=velocity.rotation_radians - TURN_STEP)
        changed = True
    if keys & {Key.DOWN, Key.S}:
        velocity = velocity.from_vec2(original * BRAKE_FACTOR)
        changed = True
    if keys & {Key.UP, Key.W}:
        log.info("Orig. Velocity: %s, %s", velocity.x, velocity.y)
        try:
            transform = get_transform(db, velocity.sobj_id)
        except TransformNotFound as exc:
            raise ControlError(str(exc)) from exc
        velocity = velocity.from_vec2(Vec2.from_angle(transform.rotation_radians) * THRUST_SPEED)
        changed = True
        log.info("Updated Velocity: %s, %s", velocity.x, velocity.y)

    if not changed:
        return None
    try:
        submit(velocity)
    except ReducerError as exc:
        raise ControlError(str(exc)) from exc
    return velocity


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def ship_label(transform: StellarObjectTransform) -> str:
    """The caption drawn next to a ship."""
    return f"Sobj{transform.sobj_id}"


def describe_state(db: Database, identity: Identity, camera_target: Vec2) -> list[str]:
    """Return the lines of the debug overview for ``identity``."""
    lines: list[str] = []
    player = get_player(db, identity)
    if player is None:
        lines.append("Player: unknown")
        lines.append(f"ID: {identity}")
    else:
        lines.append(f"Player: {player.username}")
        controlled = get_controlled_stellar_object(db, player.identity)
        if controlled is None:
            lines.append("Ship: None")
        else:
            try:
                transform = get_transform(db, controlled)
            except TransformNotFound:
                lines.append("Ship: unknown")
            else:
                lines.append(f"Ship: {_fmt(transform.x)}, {_fmt(transform.y)}")

    for obj in db.stellar_object:
        try:
            transform = get_transform(db, obj.id)
        except TransformNotFound:
            position = "Position: n/a"
        else:
            position = f"Position: {_fmt(transform.x)}, {_fmt(transform.y)}"
        lines.append(f"- Ship #{obj.id}  {position}")

    for controlled_row in db.player_controlled_stellar_object:
        lines.append(
            f" - Player Controlled Obj #{controlled_row.controlled_sobj_id}"
            f" in Sec#{controlled_row.sector_id}"
        )

    lines.append(f"Camera: {_fmt(camera_target.x)}, {_fmt(camera_target.y)}")
    return lines