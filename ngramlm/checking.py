"""
Self-consistency check: does each modelled distribution sum to one?
"""

import logging
import random
from typing import Optional

from .smoothing import Smoother


logger = logging.getLogger(__name__)

DEFAULT_CHECK_SAMPLES = 500


class ModelValidator:
    """
    Samples observed contexts and adds up the probability of every word seen
    in each, plus the mass the context reserves for unseen words.
    """

    def __init__(self, smoother: Smoother, num_samples: int = DEFAULT_CHECK_SAMPLES):
        if num_samples < 1:
            raise ValueError("num_samples must be positive")
        self.smoother = smoother
        self.num_samples = num_samples

    def check_mass_sum(self, rng: Optional[random.Random] = None) -> float:
        """Return the sampled sum that lies furthest from 1.0."""
        rng = rng or random.Random()
        contexts = self.smoother.mass_contexts()
        if not contexts:
            raise RuntimeError("Model has no observed contexts to check")

        sample = rng.sample(contexts, min(self.num_samples, len(contexts)))

        worst = 1.0
        for context in sample:
            total = self.smoother.context_mass(context)
            if abs(total - 1.0) > abs(worst - 1.0):
                worst = total

        logger.debug("Checked %d contexts, worst mass sum %.10f", len(sample), worst)
        return worst
