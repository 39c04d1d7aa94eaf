import importlib.util
import io
import logging
import os
import unittest
from contextlib import redirect_stdout
from unittest import mock

from salvo.utils.debug import logger

HARNESS_PATH = os.path.join(os.path.dirname(__file__), "..", "scripts", "strategy_harness.py")


def load_harness():
    spec = importlib.util.spec_from_file_location("strategy_harness", HARNESS_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class HarnessParamTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.harness = load_harness()

    @classmethod
    def tearDownClass(cls):
        for handler in list(logger.handlers):
            if getattr(handler, "_salvo_handler", False):
                logger.removeHandler(handler)
                handler.close()
        logger.setLevel(logging.NOTSET)

    def test_params_split_across_models(self):
        params = self.harness._parse_params(
            ["parity_damping=0.5", "iterations = 50"],
            ["density", "mcts", "entropy"],
        )
        self.assertEqual(params["density"], {"parity_damping": 0.5})
        self.assertEqual(params["mcts"], {"iterations": 50})
        self.assertEqual(params["entropy"], {})

    def test_bad_params_are_rejected(self):
        with self.assertRaises(ValueError):
            self.harness._parse_params(["iterations"], ["mcts"])
        with self.assertRaises(ValueError):
            self.harness._parse_params(["=3"], ["mcts"])
        with self.assertRaises(ValueError):
            self.harness._parse_params(["iterations=50"], ["density", "minimax"])
        with self.assertRaises(ValueError):
            self.harness._parse_params(["ucb_c=wide"], ["mcts"])

    def test_list_params_prints_the_tunables(self):
        out = io.StringIO()
        with redirect_stdout(out):
            code = self.harness.main(["--models", "mcts,minimax", "--list-params"])
        text = out.getvalue()
        self.assertEqual(code, 0)
        self.assertIn("mcts:", text)
        self.assertIn("ucb_c", text)
        self.assertIn("rollout_depth", text)
        self.assertIn("minimax: (no tunables)", text)

    def test_params_reach_the_engine_config(self):
        stats = mock.Mock(shots=10)
        with mock.patch.object(self.harness, "simulate_engine_game", return_value=stats) as game:
            with redirect_stdout(io.StringIO()):
                self.harness.main(["--models", "density", "--games", "2", "--param", "parity_damping=0.3"])
        self.assertEqual(game.call_count, 2)
        for call in game.call_args_list:
            config = call.args[2]
            self.assertEqual(config.hunt_strategy, "density")
            self.assertEqual(config.strategy_params, {"parity_damping": 0.3})


if __name__ == "__main__":
    unittest.main()
