from typing import Sequence, Tuple

from .types import CellUpdate, Coord


class EngineError(Exception):
    """Base class for errors surfaced to the engine's host."""


class InvalidCoordinateError(EngineError, ValueError):
    pass


class PlacementInfeasibleError(EngineError):
    """The requested fleet cannot be seated on the board.

    Fatal for the match: the ship configuration is incompatible with the
    board size (or the retry budget is far too small).
    """

    def __init__(self, message: str, board_size: int = 0, ship_lengths: Sequence[int] = ()):
        super().__init__(message)
        self.board_size = board_size
        self.ship_lengths = tuple(ship_lengths)


class InconsistentOutcomeError(EngineError):
    """A SUNK report does not match the remaining opponent fleet.

    Recoverable: the reported cells have been kept as HIT, the ledger is
    unchanged and targeting stays active. Hosts should offer an undo.
    """

    def __init__(
        self,
        length: int,
        cells: Sequence[Coord],
        remaining: Sequence[int],
        updated_cells: Sequence[CellUpdate] = (),
    ):
        self.length = length
        self.cells: Tuple[Coord, ...] = tuple(cells)
        self.remaining: Tuple[int, ...] = tuple(remaining)
        self.updated_cells: Tuple[CellUpdate, ...] = tuple(updated_cells)
        super().__init__(
            f"reported sunk ship of length {length} but none of that length remains "
            f"(remaining: {list(self.remaining) or 'none'}); consider undoing the last report"
        )
