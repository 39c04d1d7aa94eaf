import math
from typing import Dict, Optional, Sequence

import numpy as np

from .types import Coord, Orientation

REGIONS = ("edge", "center", "corner")
PROFILE_VERSION = 1


def cell_region(x: int, y: int, size: int) -> Optional[str]:
    """Region of a cell: corner, edge, center or None for the ring in between."""
    low_x, high_x = x <= 1, x >= size - 2
    low_y, high_y = y <= 1, y >= size - 2
    if (low_x or high_x) and (low_y or high_y):
        return "corner"
    if x == 0 or y == 0 or x == size - 1 or y == size - 1:
        return "edge"
    mid = (size - 1) / 2.0
    if max(abs(x - mid), abs(y - mid)) <= size / 4.0:
        return "center"
    return None


def _ship_orientation(cells: Sequence[Coord]) -> Optional[Orientation]:
    if len(cells) < 2:
        return None
    xs = {c[0] for c in cells}
    return Orientation.VERTICAL if len(xs) == 1 else Orientation.HORIZONTAL


def _unit(value, default: float) -> float:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(v) or math.isinf(v):
        return default
    return max(0.0, min(1.0, v))


def _count(value) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


class OpponentProfile:
    """Long-run statistics on where and how the opponent places ships."""

    def __init__(self):
        self.placement_bias: Dict[str, float] = {r: 1.0 / 3.0 for r in REGIONS}
        self.orientation_bias: Dict[str, float] = {"vertical": 0.5, "horizontal": 0.5}
        self.ships_observed = 0
        self.matches = 0

    def observe_ship(self, cells: Sequence[Coord], size: int, learning_rate: float = 0.2) -> None:
        if not cells:
            return
        counts = {r: 0 for r in REGIONS}
        for x, y in cells:
            region = cell_region(x, y, size)
            if region is not None:
                counts[region] += 1
        n = float(len(cells))
        a = max(0.0, min(1.0, learning_rate))
        for r in REGIONS:
            self.placement_bias[r] = (1.0 - a) * self.placement_bias[r] + a * (counts[r] / n)

        orient = _ship_orientation(cells)
        if orient is not None:
            vertical = 1.0 if orient is Orientation.VERTICAL else 0.0
            self.orientation_bias["vertical"] = (1.0 - a) * self.orientation_bias["vertical"] + a * vertical
            self.orientation_bias["horizontal"] = 1.0 - self.orientation_bias["vertical"]
        self.ships_observed += 1

    def merge(self, other: "OpponentProfile", weight: float = 0.7) -> None:
        """Blend ``other`` in, keeping ``weight`` of its biases.

        A profile with no observations of its own takes ``other`` as is.
        """
        w = 1.0 if self.ships_observed == 0 else max(0.0, min(1.0, weight))
        if other.ships_observed > 0:
            for r in REGIONS:
                self.placement_bias[r] = (1.0 - w) * self.placement_bias[r] + w * other.placement_bias[r]
            for k in ("vertical", "horizontal"):
                self.orientation_bias[k] = (1.0 - w) * self.orientation_bias[k] + w * other.orientation_bias[k]
        self.ships_observed += other.ships_observed
        self.matches += other.matches

    def cell_prior(self, size: int, strength: float = 0.5) -> np.ndarray:
        """Per-cell multiplier for the density estimator, indexed ``[y, x]``.

        A neutral bias (1/3 per region) gives 1.0 everywhere.
        """
        weights = {r: max(0.1, 1.0 + strength * (self.placement_bias[r] * 3.0 - 1.0)) for r in REGIONS}
        prior = np.ones((size, size), dtype=float)
        for y in range(size):
            for x in range(size):
                region = cell_region(x, y, size)
                if region is not None:
                    prior[y, x] = weights[region]
        return prior

    def orientation_weights(self, strength: float = 0.5) -> Dict[Orientation, float]:
        return {
            Orientation.VERTICAL: max(0.1, 1.0 + strength * (self.orientation_bias["vertical"] * 2.0 - 1.0)),
            Orientation.HORIZONTAL: max(0.1, 1.0 + strength * (self.orientation_bias["horizontal"] * 2.0 - 1.0)),
        }

    def to_dict(self) -> dict:
        return {
            "version": PROFILE_VERSION,
            "placementBias": dict(self.placement_bias),
            "orientationBias": dict(self.orientation_bias),
            "shipsObserved": self.ships_observed,
            "matches": self.matches,
        }

    @classmethod
    def from_dict(cls, data) -> "OpponentProfile":
        """Parse an untrusted blob; anything unusable keeps its default."""
        profile = cls()
        if not isinstance(data, dict):
            return profile
        placement = data.get("placementBias")
        if isinstance(placement, dict):
            for r in REGIONS:
                if r in placement:
                    profile.placement_bias[r] = _unit(placement[r], profile.placement_bias[r])
        orientation = data.get("orientationBias")
        if isinstance(orientation, dict) and "vertical" in orientation:
            vertical = _unit(orientation["vertical"], 0.5)
            profile.orientation_bias = {"vertical": vertical, "horizontal": 1.0 - vertical}
        profile.ships_observed = _count(data.get("shipsObserved", 0))
        profile.matches = _count(data.get("matches", 0))
        return profile

    def copy(self) -> "OpponentProfile":
        clone = OpponentProfile()
        clone.placement_bias = dict(self.placement_bias)
        clone.orientation_bias = dict(self.orientation_bias)
        clone.ships_observed = self.ships_observed
        clone.matches = self.matches
        return clone

    def __eq__(self, other) -> bool:
        if not isinstance(other, OpponentProfile):
            return NotImplemented
        return self.to_dict() == other.to_dict()
