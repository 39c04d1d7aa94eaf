import unittest

from salvo.layouts.builtins import builtin_fleets, fleet_for_size, fleet_from_lengths
from salvo.layouts.definition import FleetDefinition, ShipSpec
from salvo.layouts.validation import validate_fleet


class FleetValidationTests(unittest.TestCase):
    def test_empty_fleet_reports_errors(self):
        fleet = FleetDefinition("test", "Test", 0, tuple())
        errors = validate_fleet(fleet)
        self.assertIn("board_size must be positive", errors)
        self.assertIn("fleet must define at least one ship", errors)

    def test_invalid_ships_report_errors(self):
        fleet = FleetDefinition(
            "test",
            "Test",
            5,
            (
                ShipSpec("a", length=0),
                ShipSpec("a", length=7),
            ),
        )
        errors = validate_fleet(fleet)
        self.assertTrue(any("duplicate ship instance_id" in e for e in errors))
        self.assertTrue(any("must have length > 0" in e for e in errors))
        self.assertFalse(any("does not fit" in e for e in errors))

        oversized = FleetDefinition("test", "Test", 5, (ShipSpec("b", length=7),))
        self.assertTrue(any("does not fit" in e for e in validate_fleet(oversized)))

    def test_overfull_board_is_rejected(self):
        fleet = FleetDefinition(
            "tiny",
            "Tiny",
            2,
            (ShipSpec("a", 2), ShipSpec("b", 2), ShipSpec("c", 1)),
        )
        errors = validate_fleet(fleet)
        self.assertTrue(any("fleet needs 5 cells" in e for e in errors))

    def test_builtin_fleets_are_valid(self):
        for fleet in builtin_fleets():
            self.assertEqual(validate_fleet(fleet), [], fleet.fleet_id)
        self.assertEqual(fleet_for_size(12).lengths(), (5, 4, 4, 3, 3, 3, 2, 2))
        self.assertEqual(fleet_for_size(15).lengths(), (5, 5, 4, 4, 3, 3, 3, 2, 2, 2, 2))
        self.assertEqual(fleet_for_size(9).lengths(), (5, 4, 3, 3, 2))

    def test_fleet_from_lengths_gives_unique_ids(self):
        fleet = fleet_from_lengths(10, [2, 3, 3])
        self.assertEqual(fleet.ship_ids(), ("line3", "line3b", "line2"))
        self.assertEqual(fleet.lengths(), (3, 3, 2))
        self.assertEqual(fleet.total_cells(), 8)
        self.assertEqual(fleet.fleet_hash, fleet_from_lengths(10, [3, 2, 3]).fleet_hash)


if __name__ == "__main__":
    unittest.main()
