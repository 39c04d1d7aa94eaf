from .builtins import armada_fleet, builtin_fleets, classic_fleet, extended_fleet, fleet_for_size, fleet_from_lengths
from .cache import DEFAULT_PLACEMENT_CACHE, FleetRuntime, PlacementCache
from .definition import FleetDefinition, ShipSpec
from .placements import (
    LayoutPlacement,
    can_place,
    feasible_anchors,
    fleet_conflicts,
    generate_line_placements,
    is_valid_fleet,
    random_fleet,
)
from .validation import validate_fleet

__all__ = [
    "FleetDefinition",
    "ShipSpec",
    "FleetRuntime",
    "LayoutPlacement",
    "PlacementCache",
    "DEFAULT_PLACEMENT_CACHE",
    "classic_fleet",
    "extended_fleet",
    "armada_fleet",
    "builtin_fleets",
    "fleet_for_size",
    "fleet_from_lengths",
    "generate_line_placements",
    "can_place",
    "feasible_anchors",
    "fleet_conflicts",
    "is_valid_fleet",
    "random_fleet",
    "validate_fleet",
]
