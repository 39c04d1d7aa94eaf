from typing import List, Set

from .definition import FleetDefinition, ShipSpec


def validate_fleet(fleet: FleetDefinition) -> List[str]:
    errors: List[str] = []

    if fleet.board_size <= 0:
        errors.append("board_size must be positive")

    if not fleet.ships:
        errors.append("fleet must define at least one ship")

    ids: Set[str] = set()
    for ship in fleet.ships:
        _validate_ship(ship, fleet.board_size, ids, errors)

    if fleet.board_size > 0 and fleet.total_cells() > fleet.board_size * fleet.board_size:
        errors.append(
            f"fleet needs {fleet.total_cells()} cells but the board only has "
            f"{fleet.board_size * fleet.board_size}"
        )

    return errors


def _validate_ship(ship: ShipSpec, board_size: int, ids: Set[str], errors: List[str]) -> None:
    if not ship.instance_id:
        errors.append("ship instance_id must be non-empty")
    elif ship.instance_id in ids:
        errors.append(f"duplicate ship instance_id: {ship.instance_id}")
    else:
        ids.add(ship.instance_id)

    length = int(ship.length or 0)
    if length <= 0:
        errors.append(f"ship {ship.instance_id} must have length > 0")
    elif board_size > 0 and length > board_size:
        errors.append(f"ship {ship.instance_id} (length {length}) does not fit a {board_size}x{board_size} board")
