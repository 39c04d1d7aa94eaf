import logging
import os
import tempfile
import unittest
from unittest import mock

from salvo.domain.config import MODE_CAUTIOUS, PARAM_SPECS, EngineConfig, SearchBudget, check_params
from salvo.strategies.registry import model_defs, model_keys
from salvo.strategies.selection import STRATEGIES
from salvo.utils.debug import configure_logging, debug_event, get_logger, logger


class EngineConfigTests(unittest.TestCase):
    def test_from_env_reads_overrides(self):
        env = {
            "SALVO_STRATEGY": "entropy",
            "SALVO_ENSEMBLE": "500",
            "SALVO_GA_POPULATION": "lots",
            "SALVO_DETERMINISTIC": "1",
            "SALVO_MIDDLE_SINKS": "off",
            "SALVO_SEED": "7",
        }
        with mock.patch.dict(os.environ, env):
            config = EngineConfig.from_env(alternates=1)
        self.assertEqual(config.hunt_strategy, "entropy")
        self.assertEqual(config.ensemble_target, 500)
        self.assertEqual(config.ga_population, 40)
        self.assertTrue(config.deterministic_search)
        self.assertFalse(config.middle_segment_sinks_three)
        self.assertEqual(config.seed, 7)
        self.assertEqual(config.alternates, 1)

    def test_budget_for_mode(self):
        config = EngineConfig()
        self.assertEqual(config.budget_for(MODE_CAUTIOUS), SearchBudget(400, 0.9, cautious=True))
        self.assertEqual(config.budget_for("unheard-of"), config.search_budgets["balanced"])

        deterministic = EngineConfig(deterministic_search=True)
        budget = deterministic.budget_for(MODE_CAUTIOUS)
        self.assertIsNone(budget.seconds)
        self.assertTrue(budget.cautious)

    def test_registry_matches_strategies(self):
        self.assertEqual(sorted(model_keys()), sorted(STRATEGIES))
        for model in model_defs():
            self.assertTrue(model["name"])
            self.assertTrue(model["description"])


class ParamSpecTests(unittest.TestCase):
    def test_every_strategy_declares_its_tunables(self):
        self.assertEqual(sorted(PARAM_SPECS), sorted(STRATEGIES))
        for specs in PARAM_SPECS.values():
            for spec in specs:
                self.assertLessEqual(spec["min"], spec["default"])
                self.assertLessEqual(spec["default"], spec["max"])

    def test_check_params_clamps_and_rounds(self):
        cleaned = check_params("mcts", {"iterations": "99.6", "ucb_c": 0.0, "rollout_depth": 0.5})
        self.assertEqual(cleaned, {"iterations": 100, "ucb_c": 0.1, "rollout_depth": 0.5})
        self.assertIsInstance(cleaned["iterations"], int)
        self.assertEqual(check_params("density", {"parity_damping": 2}), {"parity_damping": 1.0})
        self.assertEqual(check_params("entropy", {}), {})

    def test_check_params_rejects_bad_input(self):
        with self.assertRaises(ValueError):
            check_params("density", {"iterations": 10})
        with self.assertRaises(ValueError):
            check_params("minimax", {"parity_damping": 0.5})
        with self.assertRaises(ValueError):
            check_params("mcts", {"ucb_c": "wide"})
        with self.assertRaises(ValueError):
            check_params("mcts", {"ucb_c": None})


class DebugLoggingTests(unittest.TestCase):
    def tearDown(self):
        for handler in list(logger.handlers):
            if getattr(handler, "_salvo_handler", False):
                logger.removeHandler(handler)
                handler.close()
        logger.setLevel(logging.NOTSET)

    def test_debug_event_writes_headline_and_details(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "salvo.log")
            handler = configure_logging("debug", path)
            debug_event("Title", "message", details="first\nsecond", source=get_logger("test"))
            handler.flush()
            with open(path, encoding="utf-8") as fh:
                text = fh.read()
            self.tearDown()
        self.assertIn("Title | message", text)
        self.assertIn("    first", text)
        self.assertIn("    second", text)

    def test_level_filters_events(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "salvo.log")
            first = configure_logging("warning", path)
            second = configure_logging("warning", path)
            self.assertNotIn(first, logger.handlers)
            debug_event("Quiet", "dropped", level="info")
            debug_event("Loud", "kept", level="warning")
            second.flush()
            with open(path, encoding="utf-8") as fh:
                text = fh.read()
            self.tearDown()
        self.assertNotIn("Quiet", text)
        self.assertIn("Loud | kept", text)


if __name__ == "__main__":
    unittest.main()
