"""
Sentence scoring: per-position word probabilities combined into the
probability of a whole sentence.
"""

import math
from typing import Iterator, List, Sequence, Tuple

from .corpus import add_sentence_markers
from .counts import Context
from .smoothing import Smoother


NEG_INF = float('-inf')


def safe_log(probability: float) -> float:
    """Natural log that maps a zero probability to -inf instead of raising."""
    return math.log(probability) if probability > 0 else NEG_INF


class SentenceScorer:
    """Scores sentences with a smoothing strategy."""

    def __init__(self, smoother: Smoother):
        self.smoother = smoother
        self.order = smoother.order

    def pad(self, sentence: Sequence[str]) -> List[str]:
        return add_sentence_markers(sentence, self.order)

    def positions(self, sentence: Sequence[str]) -> Iterator[Tuple[Context, str]]:
        """(context, word) for every predicted position of the padded sentence."""
        padded = self.pad(sentence)
        for i in range(self.order - 1, len(padded)):
            yield tuple(padded[i - self.order + 1:i]), padded[i]

    def word_probability(self, sentence: Sequence[str], index: int) -> float:
        """
        Probability of ``sentence[index]`` given the tokens before it.

        ``sentence`` is taken as is (callers include sentinels if they want
        them); a position with fewer than ``order - 1`` predecessors is
        conditioned on START padding.
        """
        if index < 0 or index >= len(sentence):
            raise IndexError(f"index {index} out of range for sentence of length {len(sentence)}")
        context = tuple(sentence[max(0, index - self.order + 1):index])
        return self.smoother.probability(context, sentence[index])

    def log_probability(self, sentence: Sequence[str]) -> float:
        total = 0.0
        for context, word in self.positions(sentence):
            total += safe_log(self.smoother.probability(context, word))
            if total == NEG_INF:
                break
        return total

    def probability(self, sentence: Sequence[str]) -> float:
        log_prob = self.log_probability(sentence)
        return 0.0 if log_prob == NEG_INF else math.exp(log_prob)
