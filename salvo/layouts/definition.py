import hashlib
import json
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ShipSpec:
    instance_id: str
    length: int
    name: Optional[str] = None

    def normalized(self) -> dict:
        return {
            "instance_id": self.instance_id,
            "length": int(self.length or 0),
            "name": self.name or "",
        }


@dataclass(frozen=True)
class FleetDefinition:
    fleet_id: str
    name: str
    board_size: int
    ships: Tuple[ShipSpec, ...]
    allow_touching: bool = False
    version: int = 1

    def normalized(self) -> dict:
        ships_sorted = sorted(self.ships, key=lambda s: s.instance_id)
        return {
            "fleet_id": self.fleet_id,
            "name": self.name,
            "board_size": int(self.board_size),
            "allow_touching": bool(self.allow_touching),
            "ships": [s.normalized() for s in ships_sorted],
        }

    @property
    def fleet_hash(self) -> str:
        payload = json.dumps(self.normalized(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]

    def ship_ids(self) -> Tuple[str, ...]:
        return tuple(s.instance_id for s in self.ships)

    def lengths(self) -> Tuple[int, ...]:
        """Ship lengths, longest first."""
        return tuple(sorted((int(s.length) for s in self.ships), reverse=True))

    def total_cells(self) -> int:
        return sum(int(s.length) for s in self.ships)
