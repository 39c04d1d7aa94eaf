from typing import Dict, List


def model_defs() -> List[Dict[str, object]]:
    # Keep in sync with the strategies in strategies.selection.
    return [
        {
            "key": "density",
            "name": "Density (Placement Count)",
            "description": "Shoots the unknown cell covered by the most feasible placements of the remaining ships.",
            "notes": "Cheap and always available. Cells off the smallest ship's lattice are damped, not dropped. Used as the fallback for every other strategy.",
        },
        {
            "key": "minimax",
            "name": "Ensemble Minimax",
            "description": "Shoots the cell that is hardest to rule out in the worst case across the sampled layouts.",
            "notes": "Needs a non-empty ensemble. Ties break toward cells with more ship layouts. Degrades to Density once the ensemble is exhausted.",
        },
        {
            "key": "entropy",
            "name": "Ensemble Entropy",
            "description": "Shoots the cell minimising the expected entropy of the remaining unknown cells.",
            "notes": "Values learning over immediate hits, so it shines while hunting an open board. Degrades to Density once the ensemble is exhausted.",
        },
        {
            "key": "mcts",
            "name": "Tree Search (MCTS)",
            "description": "Monte Carlo tree search over shot sequences, ranked by visit count.",
            "notes": "The default. Budget and caution come from the tactical mode; a hard wall-clock ceiling always applies. Deterministic for a fixed seed with an iteration-only budget.",
        },
    ]


def model_keys() -> List[str]:
    return [str(m["key"]) for m in model_defs()]
