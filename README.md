# solarance

Game rules and client-side helpers for a small multiplayer space
simulation. Ships, asteroids and stations live in sectors; each one is a
*stellar object* with an internal transform, a velocity, and published
high- and low-resolution transforms that players see depending on where
the object lies relative to their view window.

All game state is held in memory in a `Database` of `Table`s, so the rules
can be run, inspected and tested directly.

## Modules

- `solarance.vector` – `Vec2`, an immutable 2D vector with `from_angle`,
  `length`, `normalize` (which raises `ValueError` for a zero-length
  vector) and `+`, `-`, scalar `*` and unary `-`.
- `solarance.models` – the game's records as frozen dataclasses:
  `StellarObject`, `StellarObjectTransform` (with `to_vec2` and
  `from_vec2`), `Player`, `Person`, `PlayerControlledStellarObject`,
  `StellarObjectPlayerWindow`, `StellarObjectControllerTurnLeft`, `Ship`,
  `Asteroid`, `SectorLocation`, `ItemStack`, `Order`, and the enumerations
  `ResourceType`, `OrderKind`, `ShipClass`, `StationKind`, `MapView`,
  `TransformResolution` and `StellarObjectKind`.
- `solarance.database` – `Table` (keyed rows with unique columns and
  optional auto-increment: `insert`, `try_insert`, `find`, `find_by`,
  `update`, `delete`), `Database` holding every game table,
  `ReducerContext` (database, caller `sender`, module `identity`, and an
  `rng`; `is_server()` tells whether the caller is the module itself) and
  `ReducerError`.
- `solarance.access` – `try_server_only`, `server_only`,
  `is_server_or_owner`, and the person actions `add_person`, `say_hello`
  and `set_map_view`.
- `solarance.stellarobjects` – `create_stellar_object_internal`,
  `create_stellar_object`, `create_stellar_object_random`,
  `create_player_controlled_ship`, `update_object_transform`,
  `update_stellar_object_velocity`, `create_turn_left_controller_for`
  (a toggle), `create_stellar_object_player_window_for`, and the visibility
  rules `visible_stellar_objects`, `visible_hi_res` and `visible_low_res`.
- `solarance.timers` – the scheduled work: `init` / `init_module` insert
  the timer rows, `advance_ships` moves every object, `move_ships` wraps
  it, `update_sobj_transforms` moves ships and republishes transforms, and
  `update_player_windows` recentres view windows.
- `solarance.queries` – client-side lookups: `get_transform` (raises
  `TransformNotFound`), `get_controlled_stellar_object`, `get_player`,
  `get_player_sobj_id`, `get_player_transform` and
  `get_player_transform_vec2`.
- `solarance.controls` – `control_player_ship` turns a set of pressed
  `Key`s into a new velocity and hands it to a `submit` callable (raising
  `ControlError` when the ship cannot be steered); `ship_label` and
  `describe_state` produce the text of a debug overview.
- `solarance.auth` – an OpenID Connect authorization-code login with
  PKCE: `OidcConfig` (`from_env` reads `AUTH0_CLIENT_ID` and
  `AUTH0_ISSUER_URL`), `make_pkce_pair`, `discover`,
  `build_authorization_url`, `parse_redirect_request`, `landing_response`,
  `exchange_code` and `get_client_token`, which prints the URL to browse
  to, waits for one redirect on `127.0.0.1:13613`, exchanges the code and
  returns the ID token. Failures raise `AuthError`.

## Example

```python
from solarance.database import Database, ReducerContext
from solarance.models import StellarObjectTransform
from solarance.queries import get_transform
from solarance.stellarobjects import (
    create_player_controlled_ship,
    update_stellar_object_velocity,
)
from solarance.timers import init, update_sobj_transforms

db = Database()
server = ReducerContext(db=db, sender="module", identity="module")
alice = ReducerContext(db=db, sender="alice", identity="module")

init(server)
create_player_controlled_ship(alice, "alice")   # ship #1 at (64, 64)

# A jump from rest to 10 is limited to an acceleration of 2.
velocity = update_stellar_object_velocity(alice, StellarObjectTransform(sobj_id=1, x=10.0))
print(velocity.x)                    # 2.0

timer = next(iter(db.update_sobj_transform_timer))
update_sobj_transforms(server, timer)
print(get_transform(db, 1).x)        # 66.0
```

When a rule refuses an action — for example a caller other than the module
or the owning player updating a velocity, or a velocity update for an
object with no velocity row — `ReducerError` is raised.

## Rules in short

- `try_server_only` and `server_only` admit every caller except the
  module's own identity, which they reject. `update_sobj_transforms`
  instead requires the caller to be the module itself.
- Each tick an object moves by its velocity; the velocity is then scaled
  by 0.975 and set to zero below a length of 0.01337, and its rotation is
  scaled by 0.75. Objects with a turn-left controller get a forward speed
  of 25 along their heading and turn a little each tick.
- A requested velocity change is limited to an acceleration of 2.0 and a
  top speed of 100.0.
- High-resolution transforms are republished every tick, low-resolution
  ones every fifth tick.
- A player's window is recentred when the ship comes within its margin.
  Objects strictly inside the window are visible at high resolution,
  those on or outside its edge at low resolution.

## What this package does not do

There is no network database server, no replication between server and
clients, and no running scheduler: the timer functions must be called by
the user. There is no game window, rendering, input handling or command
line program; `solarance.controls` takes pressed keys as values and only
produces velocities and text. `get_client_token` prints the login URL but
does not open a browser.