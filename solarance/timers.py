"""Scheduled reducers that move ships and publish their transforms."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from datetime import timedelta

from solarance.database import ReducerContext, ReducerError
from solarance.vector import ZERO, Vec2

log = logging.getLogger(__name__)

LOW_RES_PERIOD = 5
TURN_LEFT_SPEED = 25.0
TURN_LEFT_RATE = math.pi * 0.01337
VELOCITY_DAMPING = 0.975
ROTATION_DAMPING = 0.75
REST_SPEED = 0.01337


@dataclass(frozen=True)
class UpdateTransformsTimer:
    scheduled_id: int
    scheduled_at: timedelta
    current_update: int = 0


@dataclass(frozen=True)
class MoveShipsTimer:
    scheduled_id: int
    scheduled_at: timedelta


@dataclass(frozen=True)
class UpdatePlayerWindowsTimer:
    scheduled_id: int
    scheduled_at: timedelta


def init(ctx: ReducerContext) -> None:
    """Schedule the transform and player-window timers."""
    ctx.db.update_sobj_transform_timer.insert(
        UpdateTransformsTimer(
            scheduled_id=0, scheduled_at=timedelta(milliseconds=1000 / 20), current_update=0
        )
    )
    ctx.db.update_player_windows_timer.insert(
        UpdatePlayerWindowsTimer(scheduled_id=0, scheduled_at=timedelta(milliseconds=750))
    )


def init_module(ctx: ReducerContext) -> None:
    """Module start-up: log who we are and schedule the timers."""
    log.info("init identity: %s", ctx.identity)
    log.info("init sender: %s", ctx.sender)
    init(ctx)


def update_sobj_transforms(ctx: ReducerContext, timer: UpdateTransformsTimer) -> None:
    """Move ships, then republish high- and (every fifth tick) low-res transforms."""
    low_resolution = timer.current_update == 0
    if not ctx.is_server():
        raise ReducerError("This reducer can only be called by SpacetimeDB!")

    advance_ships(ctx)

    ctx.db.update_sobj_transform_timer.update(
        replace(timer, current_update=(timer.current_update + 1) % LOW_RES_PERIOD)
    )

    for row in ctx.db.stellar_object_hi_res:
        ctx.db.stellar_object_hi_res.delete(row.sobj_id)
    if low_resolution:
        for row in ctx.db.stellar_object_low_res:
            ctx.db.stellar_object_low_res.delete(row.sobj_id)

    for row in ctx.db.stellar_object_internal:
        ctx.db.stellar_object_hi_res.insert(row)
        if low_resolution:
            ctx.db.stellar_object_low_res.insert(row)


def move_ships(ctx: ReducerContext, timer: MoveShipsTimer) -> None:
    """Timer entry point for advance_ships."""
    advance_ships(ctx)


def advance_ships(ctx: ReducerContext) -> None:
    """Apply each object's velocity to its transform, then damp the velocity."""
    for obj in ctx.db.stellar_object:
        transform = ctx.db.stellar_object_internal.find(obj.id)
        if transform is None:
            continue
        velocity = ctx.db.stellar_object_velocity.find(obj.id)
        if velocity is None:
            continue

        if ctx.db.stellar_object_controller_turn_left.find(obj.id) is not None:
            velocity = velocity.from_vec2(
                Vec2.from_angle(transform.rotation_radians) * TURN_LEFT_SPEED
            )
            transform = replace(
                transform, rotation_radians=transform.rotation_radians + TURN_LEFT_RATE
            )

        transform = transform.from_vec2(transform.to_vec2() + velocity.to_vec2())
        rotation = transform.rotation_radians + velocity.rotation_radians
        if abs(rotation) > math.pi * 2.0:
            rotation = abs(rotation) % math.pi * 2.0
        transform = replace(transform, rotation_radians=rotation)
        ctx.db.stellar_object_internal.update(transform)

        velocity = velocity.from_vec2(velocity.to_vec2() * VELOCITY_DAMPING)
        if velocity.to_vec2().length() < REST_SPEED:
            velocity = velocity.from_vec2(ZERO)
        velocity = replace(velocity, rotation_radians=velocity.rotation_radians * ROTATION_DAMPING)
        ctx.db.stellar_object_velocity.update(velocity)


def update_player_windows(ctx: ReducerContext, timer: UpdatePlayerWindowsTimer) -> None:
    """Recentre any player window whose ship has come within its margin."""
    for window in ctx.db.stellar_object_player_window:
        player = ctx.db.player_controlled_stellar_object.find(window.identity)
        if player is None:
            continue
        transform = ctx.db.stellar_object_internal.find(player.controlled_sobj_id)
        if transform is None:
            continue
        if (
            transform.x < window.tl_x + window.margin
            or transform.x > window.br_x - window.margin
            or transform.y < window.tl_y + window.margin
            or transform.y > window.br_y - window.margin
        ):
            result = ctx.db.stellar_object_player_window.update(
                replace(
                    window,
                    tl_x=transform.x - window.window,
                    tl_y=transform.y - window.window,
                    br_x=transform.x + window.window,
                    br_y=transform.y + window.window,
                )
            )
            log.info(
                "Recalculating window for player stellar obj #%s: [(%s, %s) (%s, %s)]",
                player.controlled_sobj_id,
                result.tl_x,
                result.tl_y,
                result.br_x,
                result.br_y,
            )