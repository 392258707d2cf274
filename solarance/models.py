"""Row and value types stored in the game database."""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from typing import Optional, Union

from solarance.vector import Vec2

Identity = str


class ResourceType(enum.Enum):
    IRON_ORE = "IronOre"
    SILICON = "Silicon"
    ICE = "Ice"
    WATER = "Water"
    METAL_PLATE = "MetalPlate"
    COMPUTER_CHIPS = "ComputerChips"
    FUEL = "Fuel"


@dataclass(frozen=True)
class ItemStack:
    resource: ResourceType
    quantity: int


class OrderKind(enum.Enum):
    MINE = "Mine"
    HAUL_TO_STATION = "HaulToStation"
    TRADE_AT_STATION = "TradeAtStation"
    DEFEND_SECTOR = "DefendSector"


@dataclass(frozen=True)
class Order:
    """An order for a ship: mine a resource, or act on a station or sector id."""

    kind: OrderKind
    target: Union[ResourceType, int]

    def __post_init__(self) -> None:
        if self.kind is OrderKind.MINE:
            if not isinstance(self.target, ResourceType):
                raise TypeError("a mining order targets a ResourceType")
        elif isinstance(self.target, bool) or not isinstance(self.target, int):
            raise TypeError(f"a {self.kind.value} order targets an integer id")


class ShipClass(enum.Enum):
    MINER = "Miner"
    FREIGHTER = "Freighter"
    FIGHTER = "Fighter"
    SCOUT = "Scout"


@dataclass(frozen=True)
class Ship:
    entity_id: int
    owner_id: Optional[int]
    faction_id: Optional[int]
    ship_class: ShipClass
    health: float
    max_health: float
    cargo_capacity: int


class StationKind(enum.Enum):
    TRADE_HUB = "TradeHub"
    REFINERY = "Refinery"
    FACTORY = "Factory"
    STORAGE_DEPOT = "StorageDepot"


@dataclass(frozen=True)
class SectorLocation:
    id: int
    name: str
    x: float
    y: float


@dataclass(frozen=True)
class Asteroid:
    entity_id: int
    resource_type: ResourceType
    amount_remaining: int


class MapView(enum.Enum):
    LOCAL_SPACE = "LocalSpace"
    LOCAL_SYSTEM = "LocalSystem"
    SOLAR_SYSTEM = "SolarSystem"
    GALACTIC_SYSTEM = "GalacticSystem"


@dataclass(frozen=True)
class Person:
    identity: Identity
    name: str
    last_view: MapView


@dataclass(frozen=True)
class Player:
    identity: Identity
    username: str


class TransformResolution(enum.IntEnum):
    INTERNAL = 0
    HIGH = 1
    LOW = 2


class StellarObjectKind(enum.Enum):
    SHIP = "Ship"
    ASTEROID = "Asteroid"
    STATION = "Station"


@dataclass(frozen=True)
class StellarObject:
    id: int
    kind: StellarObjectKind
    sector_id: int


@dataclass(frozen=True)
class PlayerControlledStellarObject:
    identity: Identity
    controlled_sobj_id: int
    sector_id: int


@dataclass(frozen=True)
class StellarObjectTransform:
    """A position or velocity with a rotation, keyed by stellar object id."""

    sobj_id: int = 0
    x: float = 0.0
    y: float = 0.0
    rotation_radians: float = 0.0

    def to_vec2(self) -> Vec2:
        return Vec2(self.x, self.y)

    def from_vec2(self, vec: Vec2) -> StellarObjectTransform:
        """Return a copy with x and y taken from ``vec``."""
        return replace(self, x=vec.x, y=vec.y)


@dataclass(frozen=True)
class StellarObjectControllerTurnLeft:
    sobj_id: int


@dataclass(frozen=True)
class StellarObjectPlayerWindow:
    """The rectangle of space a player gets high-resolution updates for."""

    identity: Identity
    sobj_id: int
    window: float
    margin: float
    tl_x: float
    tl_y: float
    br_x: float
    br_y: float