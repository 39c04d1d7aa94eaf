from dataclasses import dataclass
from typing import Dict, List, Tuple

from .definition import FleetDefinition
from .placements import LayoutPlacement, generate_line_placements


@dataclass
class FleetRuntime:
    definition: FleetDefinition
    placements: Dict[str, List[LayoutPlacement]]


class PlacementCache:
    """Placement catalogue per (board size, ship length)."""

    def __init__(self):
        self._cache: Dict[Tuple[int, int], List[LayoutPlacement]] = {}
        self._fleets: Dict[str, FleetRuntime] = {}

    def get(self, board_size: int, length: int) -> List[LayoutPlacement]:
        key = (int(board_size), int(length))
        if key not in self._cache:
            self._cache[key] = generate_line_placements(key[1], key[0])
        return self._cache[key]

    def fleet(self, definition: FleetDefinition) -> FleetRuntime:
        key = f"{definition.fleet_hash}:{definition.version}"
        if key not in self._fleets:
            placements = {
                spec.instance_id: self.get(definition.board_size, spec.length)
                for spec in definition.ships
            }
            self._fleets[key] = FleetRuntime(definition, placements)
        return self._fleets[key]


DEFAULT_PLACEMENT_CACHE = PlacementCache()
