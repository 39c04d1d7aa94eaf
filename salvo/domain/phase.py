from dataclasses import dataclass, field
from typing import List

from .types import Coord

PHASE_HUNT = "HUNT"
PHASE_TARGET = "TARGET"


@dataclass
class TargetingState:
    mode: str = PHASE_HUNT
    queue: List[Coord] = field(default_factory=list)
    current_hits: List[Coord] = field(default_factory=list)
    # Set once the opening shot has been taken.
    opened: bool = False

    def enter_hunt(self) -> None:
        self.mode = PHASE_HUNT
        self.queue = []
        self.current_hits = []

    def copy(self) -> "TargetingState":
        return TargetingState(self.mode, list(self.queue), list(self.current_hits), self.opened)

