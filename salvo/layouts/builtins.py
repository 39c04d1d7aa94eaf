from collections import Counter
from typing import Dict, Optional, Sequence, Tuple

from .definition import FleetDefinition, ShipSpec

_NAMES = {
    5: "Carrier",
    4: "Battleship",
    3: "Cruiser",
    2: "Destroyer",
}


def fleet_from_lengths(
    board_size: int,
    lengths: Sequence[int],
    fleet_id: str = "custom",
    name: Optional[str] = None,
) -> FleetDefinition:
    """Build a no-touch fleet definition from a plain list of ship lengths."""
    seen: Dict[int, int] = Counter()
    ships = []
    for length in sorted((int(v) for v in lengths), reverse=True):
        seen[length] += 1
        suffix = "" if seen[length] == 1 else chr(ord("a") + seen[length] - 1)
        label = _NAMES.get(length, "Ship")
        ships.append(
            ShipSpec(
                instance_id=f"line{length}{suffix}",
                length=length,
                name=f"{label} ({length})",
            )
        )
    return FleetDefinition(
        fleet_id=fleet_id,
        name=name or f"Custom ({board_size}x{board_size})",
        board_size=int(board_size),
        ships=tuple(ships),
        allow_touching=False,
    )


def classic_fleet() -> FleetDefinition:
    return fleet_from_lengths(10, (5, 4, 3, 3, 2), fleet_id="classic", name="Classic (10x10)")


def extended_fleet() -> FleetDefinition:
    return fleet_from_lengths(12, (5, 4, 4, 3, 3, 3, 2, 2), fleet_id="extended", name="Extended (12x12)")


def armada_fleet() -> FleetDefinition:
    return fleet_from_lengths(
        15,
        (5, 5, 4, 4, 3, 3, 3, 2, 2, 2, 2),
        fleet_id="armada",
        name="Armada (15x15)",
    )


def builtin_fleets() -> Tuple[FleetDefinition, ...]:
    return (classic_fleet(), extended_fleet(), armada_fleet())


def fleet_for_size(board_size: int) -> FleetDefinition:
    """Preset fleet for a board size; falls back to the classic composition."""
    for fleet in builtin_fleets():
        if fleet.board_size == board_size:
            return fleet
    return fleet_from_lengths(board_size, classic_fleet().lengths())
