import pytest

from solarance.database import Database
from solarance.models import Player, PlayerControlledStellarObject, StellarObjectTransform
from solarance.queries import (
    TransformNotFound,
    get_controlled_stellar_object,
    get_player,
    get_player_sobj_id,
    get_player_transform,
    get_player_transform_vec2,
    get_transform,
)
from solarance.vector import Vec2


@pytest.fixture
def db():
    return Database()


def _add_player(db, identity="alice", sobj_id=3):
    db.player.insert(Player(identity=identity, username="GalaxyCr8r"))
    db.player_controlled_stellar_object.insert(
        PlayerControlledStellarObject(identity=identity, controlled_sobj_id=sobj_id, sector_id=0)
    )


def test_get_transform_prefers_hi_res(db):
    hi = StellarObjectTransform(sobj_id=1, x=5.0, y=6.0)
    lo = StellarObjectTransform(sobj_id=1, x=50.0, y=60.0)
    db.stellar_object_hi_res.insert(hi)
    db.stellar_object_low_res.insert(lo)
    assert get_transform(db, 1) == hi


def test_get_transform_falls_back_to_low_res(db):
    lo = StellarObjectTransform(sobj_id=2, x=50.0, y=60.0)
    db.stellar_object_low_res.insert(lo)
    assert get_transform(db, 2) == lo


def test_get_transform_missing_raises(db):
    with pytest.raises(TransformNotFound, match="even low-rez"):
        get_transform(db, 9)


def test_get_player(db):
    assert get_player(db, "alice") is None
    _add_player(db)
    assert get_player(db, "alice").username == "GalaxyCr8r"


def test_controlled_object_and_player_sobj_id(db):
    _add_player(db, sobj_id=3)
    assert get_controlled_stellar_object(db, "alice") == 3
    assert get_player_sobj_id(db, "alice") == 3
    assert get_controlled_stellar_object(db, "bob") is None


def test_player_sobj_id_needs_player_row(db):
    db.player_controlled_stellar_object.insert(
        PlayerControlledStellarObject(identity="ghost", controlled_sobj_id=4, sector_id=0)
    )
    assert get_player_sobj_id(db, "ghost") is None


def test_player_transform(db):
    _add_player(db, sobj_id=3)
    assert get_player_transform(db, "alice") is None
    transform = StellarObjectTransform(sobj_id=3, x=64.0, y=64.0)
    db.stellar_object_low_res.insert(transform)
    assert get_player_transform(db, "alice") == transform


def test_player_transform_vec2_default_and_value(db):
    default = Vec2(1.0, 2.0)
    assert get_player_transform_vec2(db, "alice", default) == default
    _add_player(db, sobj_id=3)
    assert get_player_transform_vec2(db, "alice", default) == default
    db.stellar_object_hi_res.insert(StellarObjectTransform(sobj_id=3, x=7.0, y=8.0))
    assert get_player_transform_vec2(db, "alice", default) == Vec2(7.0, 8.0)