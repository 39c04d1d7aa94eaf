from collections import deque
from typing import Deque, Optional

from salvo.domain.config import MODE_AGGRESSIVE, MODE_BALANCED, MODE_CAUTIOUS


class TacticalController:
    """Picks a search posture from material advantage and recent hit rate.

    The mode only selects the planner's budget and cautious flag.
    """

    def __init__(
        self,
        window: int = 10,
        advantage_threshold: float = 0.25,
        high_hit_rate: float = 0.5,
        low_hit_rate: float = 0.15,
    ):
        self.window = max(1, int(window))
        self.advantage_threshold = advantage_threshold
        self.high_hit_rate = high_hit_rate
        self.low_hit_rate = low_hit_rate
        self.history: Deque[bool] = deque(maxlen=self.window)
        self.mode = MODE_BALANCED

    def record(self, hit: bool) -> None:
        self.history.append(bool(hit))

    def hit_rate(self) -> Optional[float]:
        if not self.history:
            return None
        return sum(1 for h in self.history if h) / float(len(self.history))

    def window_full(self) -> bool:
        return len(self.history) >= self.window

    def update(self, own_ships_left_ratio: float, opponent_ships_left_ratio: float) -> str:
        advantage = own_ships_left_ratio - opponent_ships_left_ratio
        rate = self.hit_rate()
        if advantage > self.advantage_threshold:
            mode = MODE_AGGRESSIVE
        elif advantage < -self.advantage_threshold:
            mode = MODE_CAUTIOUS
        elif self.window_full() and rate is not None and rate >= self.high_hit_rate:
            mode = MODE_AGGRESSIVE
        elif self.window_full() and rate is not None and rate <= self.low_hit_rate:
            mode = MODE_CAUTIOUS
        else:
            mode = MODE_BALANCED
        self.mode = mode
        return mode

    def copy(self) -> "TacticalController":
        clone = TacticalController(self.window, self.advantage_threshold, self.high_hit_rate, self.low_hit_rate)
        clone.history.extend(self.history)
        clone.mode = self.mode
        return clone
