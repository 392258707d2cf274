import math
from dataclasses import replace
from datetime import timedelta

import pytest

from solarance.database import Database, ReducerContext, ReducerError
from solarance.models import StellarObjectKind, StellarObjectTransform
from solarance.stellarobjects import (
    create_player_controlled_ship,
    create_stellar_object_internal,
    create_stellar_object_player_window_for,
    create_turn_left_controller_for,
)
from solarance.timers import (
    MoveShipsTimer,
    UpdatePlayerWindowsTimer,
    advance_ships,
    init,
    init_module,
    move_ships,
    update_player_windows,
    update_sobj_transforms,
)

SERVER = "module"


def make_ctx(sender=SERVER, db=None):
    return ReducerContext(db=db if db is not None else Database(), sender=sender, identity=SERVER)


def make_ship(ctx, x=10.0, y=20.0, rotation=0.0):
    sobj = create_stellar_object_internal(
        ctx, StellarObjectKind.SHIP, 0, StellarObjectTransform(x=x, y=y, rotation_radians=rotation), 0.0
    )
    return sobj.id


def set_velocity(ctx, sobj_id, x, y, rotation=0.0):
    ctx.db.stellar_object_velocity.update(StellarObjectTransform(sobj_id, x, y, rotation))


def current_timer(ctx):
    return next(iter(ctx.db.update_sobj_transform_timer))


def test_init_schedules_timers():
    ctx = make_ctx()
    init(ctx)
    transforms = list(ctx.db.update_sobj_transform_timer)
    windows = list(ctx.db.update_player_windows_timer)
    assert len(transforms) == 1 and len(windows) == 1
    assert transforms[0].scheduled_at == timedelta(milliseconds=1000 / 20)
    assert transforms[0].current_update == 0
    assert windows[0].scheduled_at == timedelta(milliseconds=750)


def test_init_module_schedules_timers():
    ctx = make_ctx()
    init_module(ctx)
    assert len(ctx.db.update_sobj_transform_timer) == 1
    assert len(ctx.db.update_player_windows_timer) == 1


def test_advance_applies_velocity_and_damps_it():
    ctx = make_ctx()
    sobj_id = make_ship(ctx)
    set_velocity(ctx, sobj_id, 3.0, 4.0, 0.2)
    advance_ships(ctx)
    internal = ctx.db.stellar_object_internal.find(sobj_id)
    assert internal.x == pytest.approx(13.0)
    assert internal.y == pytest.approx(24.0)
    assert internal.rotation_radians == pytest.approx(0.2)
    velocity = ctx.db.stellar_object_velocity.find(sobj_id)
    assert velocity.to_vec2().length() < 5.0
    assert velocity.x * 4.0 == pytest.approx(velocity.y * 3.0)
    assert velocity.rotation_radians / 0.2 == pytest.approx(0.75)


def test_advance_stops_slow_objects():
    ctx = make_ctx()
    sobj_id = make_ship(ctx)
    set_velocity(ctx, sobj_id, 0.01, 0.0)
    advance_ships(ctx)
    velocity = ctx.db.stellar_object_velocity.find(sobj_id)
    assert (velocity.x, velocity.y) == (0.0, 0.0)


def test_advance_keeps_rotation_bounded():
    ctx = make_ctx()
    sobj_id = make_ship(ctx, rotation=6.0)
    set_velocity(ctx, sobj_id, 0.0, 0.0, 1.0)
    advance_ships(ctx)
    rotation = ctx.db.stellar_object_internal.find(sobj_id).rotation_radians
    assert 0.0 <= rotation <= 2.0 * math.pi


def test_advance_turn_left_controller():
    ctx = make_ctx()
    sobj_id = make_ship(ctx, x=0.0, y=0.0)
    create_turn_left_controller_for(ctx, sobj_id)
    advance_ships(ctx)
    internal = ctx.db.stellar_object_internal.find(sobj_id)
    assert internal.x == pytest.approx(25.0)
    assert internal.y == pytest.approx(0.0)
    assert internal.rotation_radians == pytest.approx(math.pi * 0.01337)


def test_advance_skips_objects_without_velocity():
    ctx = make_ctx()
    sobj_id = make_ship(ctx)
    ctx.db.stellar_object_velocity.delete(sobj_id)
    before = ctx.db.stellar_object_internal.find(sobj_id)
    advance_ships(ctx)
    assert ctx.db.stellar_object_internal.find(sobj_id) == before


def test_move_ships_advances():
    ctx = make_ctx()
    sobj_id = make_ship(ctx)
    set_velocity(ctx, sobj_id, 1.0, 0.0)
    move_ships(ctx, MoveShipsTimer(scheduled_id=1, scheduled_at=timedelta(milliseconds=50)))
    assert ctx.db.stellar_object_internal.find(sobj_id).x == pytest.approx(11.0)


def test_update_transforms_rejects_clients():
    ctx = make_ctx()
    init(ctx)
    client = make_ctx("client-a", ctx.db)
    with pytest.raises(ReducerError, match="only be called by SpacetimeDB"):
        update_sobj_transforms(client, current_timer(ctx))


def test_update_transforms_publishes_both_resolutions():
    ctx = make_ctx()
    init(ctx)
    sobj_id = make_ship(ctx)
    update_sobj_transforms(ctx, current_timer(ctx))
    internal = ctx.db.stellar_object_internal.find(sobj_id)
    assert ctx.db.stellar_object_hi_res.find(sobj_id) == internal
    assert ctx.db.stellar_object_low_res.find(sobj_id) == internal
    assert current_timer(ctx).current_update == 1


def test_update_transforms_low_res_only_on_first_tick():
    ctx = make_ctx()
    init(ctx)
    sobj_id = make_ship(ctx)
    update_sobj_transforms(ctx, current_timer(ctx))
    published = ctx.db.stellar_object_low_res.find(sobj_id)
    set_velocity(ctx, sobj_id, 5.0, 0.0)
    update_sobj_transforms(ctx, current_timer(ctx))
    internal = ctx.db.stellar_object_internal.find(sobj_id)
    assert ctx.db.stellar_object_hi_res.find(sobj_id) == internal
    assert ctx.db.stellar_object_low_res.find(sobj_id) == published
    assert internal != published


def test_update_transforms_counter_cycles():
    ctx = make_ctx()
    init(ctx)
    seen = []
    for _ in range(5):
        update_sobj_transforms(ctx, current_timer(ctx))
        seen.append(current_timer(ctx).current_update)
    assert seen == [1, 2, 3, 4, 0]


def _windowed_player(ctx):
    create_player_controlled_ship(ctx, "client-a")
    sobj_id = ctx.db.player_controlled_stellar_object.find("client-a").controlled_sobj_id
    create_stellar_object_player_window_for(ctx, sobj_id)
    return sobj_id


WINDOW_TIMER = UpdatePlayerWindowsTimer(scheduled_id=1, scheduled_at=timedelta(milliseconds=750))


def test_player_window_unchanged_inside_margin():
    ctx = make_ctx()
    sobj_id = _windowed_player(ctx)
    ctx.db.stellar_object_internal.update(StellarObjectTransform(sobj_id, 0.0, 0.0))
    before = ctx.db.stellar_object_player_window.find("client-a")
    update_player_windows(ctx, WINDOW_TIMER)
    assert ctx.db.stellar_object_player_window.find("client-a") == before


def test_player_window_recentres_on_ship():
    ctx = make_ctx()
    sobj_id = _windowed_player(ctx)
    internal = ctx.db.stellar_object_internal.find(sobj_id)
    assert internal.x > 0.0
    update_player_windows(ctx, WINDOW_TIMER)
    window = ctx.db.stellar_object_player_window.find("client-a")
    assert (window.tl_x + window.br_x) / 2.0 == pytest.approx(internal.x)
    assert (window.tl_y + window.br_y) / 2.0 == pytest.approx(internal.y)
    assert window.br_x - window.tl_x == pytest.approx(2.0 * window.window)


def test_player_window_without_transform_is_left_alone():
    ctx = make_ctx()
    sobj_id = _windowed_player(ctx)
    ctx.db.stellar_object_internal.delete(sobj_id)
    before = ctx.db.stellar_object_player_window.find("client-a")
    update_player_windows(ctx, WINDOW_TIMER)
    assert ctx.db.stellar_object_player_window.find("client-a") == replace(before)