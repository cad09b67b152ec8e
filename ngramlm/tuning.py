"""
Interpolation Weight Tuning

Chooses interpolation weights that maximise the log-likelihood of held-out
sentences. Held-out statistics are collected in a separate FrequencyTable,
so the production counts are never touched.
"""

import logging
import math
from typing import Iterator, List, Sequence, Tuple

from .counts import FrequencyTable
from .scoring import SentenceScorer
from .smoothing import InterpolatedSmoother, validate_weights


logger = logging.getLogger(__name__)

DEFAULT_TUNING_STEP = 0.05
DEFAULT_EM_ITERATIONS = 50

TUNING_METHODS = ("grid", "em")


def simplex_points(size: int, step: float = DEFAULT_TUNING_STEP) -> Iterator[Tuple[float, ...]]:
    """
    Every weight vector of ``size`` entries on a grid of spacing ``step``
    whose entries sum to one. The first weight varies slowest.
    """
    divisions = int(round(1.0 / step))
    if divisions < 1 or abs(divisions * step - 1.0) > 1e-9:
        raise ValueError(f"step must divide 1 evenly, got {step}")

    def compositions(remaining: int, parts: int):
        if parts == 1:
            yield (remaining,)
            return
        for first in range(remaining + 1):
            for rest in compositions(remaining - first, parts - 1):
                yield (first,) + rest

    for point in compositions(divisions, size):
        yield tuple(p / divisions for p in point)


class WeightTuner:
    """
    Tunes the weights of an InterpolatedSmoother on held-out data.

    Two search strategies are available:

    * ``grid``: evaluate every point of the weight simplex at ``step``
      resolution and keep the first one with the highest mean sentence
      log-likelihood
    * ``em``: start from uniform weights and re-estimate them from the
      fractional responsibility each order takes for every held-out n-gram
    """

    def __init__(self, step: float = DEFAULT_TUNING_STEP, method: str = "grid",
                 iterations: int = DEFAULT_EM_ITERATIONS):
        if method not in TUNING_METHODS:
            raise ValueError(f"Unknown tuning method: {method} (expected one of {TUNING_METHODS})")
        if iterations < 1:
            raise ValueError("iterations must be positive")
        self.step = step
        self.method = method
        self.iterations = iterations

    def tune(self, held_out: Sequence[Sequence[str]],
             smoother: InterpolatedSmoother) -> Tuple[float, ...]:
        """
        Return the best weights for ``smoother`` on ``held_out``.

        Args:
            held_out: Tokenized held-out sentences
            smoother: The interpolation whose weights are being tuned

        Returns:
            Tuple of weights, highest order first
        """
        held_out = [list(sentence) for sentence in held_out]
        if not held_out:
            raise ValueError("held-out data is empty")

        table = FrequencyTable(smoother.order)
        table.train(held_out)
        candidate = smoother.rebuild(table)

        positions = self._component_probabilities(held_out, candidate)
        logger.debug("Tuning %d weights on %d held-out positions",
                     smoother.order, len(positions))

        if self.method == "grid":
            weights = self._grid_search(positions, len(held_out), smoother.order)
        else:
            weights = self._expectation_maximization(positions, smoother.order)

        weights = validate_weights(weights, smoother.order)
        logger.info("Interpolation weights: %s", " ".join(f"{w:.4f}" for w in weights))
        return weights

    def _component_probabilities(self, sentences: List[List[str]],
                                 smoother: InterpolatedSmoother) -> List[Tuple[float, ...]]:
        scorer = SentenceScorer(smoother)
        return [
            smoother.component_probabilities(context, word)
            for sentence in sentences
            for context, word in scorer.positions(sentence)
        ]

    @staticmethod
    def log_likelihood(weights: Sequence[float], positions: List[Tuple[float, ...]],
                       num_sentences: int) -> float:
        """Mean per-sentence log-likelihood under ``weights``."""
        total = 0.0
        for probs in positions:
            p = sum(w * q for w, q in zip(weights, probs))
            if p <= 0:
                return float('-inf')
            total += math.log(p)
        return total / num_sentences

    def _grid_search(self, positions, num_sentences: int, size: int) -> Tuple[float, ...]:
        best_weights = None
        best_ll = float('-inf')
        for weights in simplex_points(size, self.step):
            ll = self.log_likelihood(weights, positions, num_sentences)
            if best_weights is None or ll > best_ll:
                best_weights, best_ll = weights, ll
        logger.debug("Grid search best log-likelihood %.6f", best_ll)
        return best_weights

    def _expectation_maximization(self, positions, size: int) -> Tuple[float, ...]:
        weights = tuple(1.0 / size for _ in range(size))
        for iteration in range(self.iterations):
            responsibility = [0.0] * size
            for probs in positions:
                mix = [w * q for w, q in zip(weights, probs)]
                denominator = sum(mix)
                if denominator <= 0:
                    continue
                for i, m in enumerate(mix):
                    responsibility[i] += m / denominator

            total = sum(responsibility)
            if total <= 0:
                break
            weights = tuple(r / total for r in responsibility)
            logger.debug("EM iteration %d: %s", iteration + 1, weights)
        return weights
