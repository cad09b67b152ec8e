"""
Sentence generation by roulette-wheel sampling of observed continuations.
"""

import random
from typing import List, Optional, Sequence

from .corpus import SENTINELS, START_TOKEN, STOP_TOKEN, UNKNOWN_TOKEN
from .counts import Context, CountTable, FrequencyTable


class SequenceGenerator:
    """
    Samples words from the empirical distribution of the highest order.

    A uniform sample in [0, 1) is drawn and the continuations of the context
    are walked in insertion order, accumulating their relative counts, until
    the running total passes the sample. If it never does (rounding), the
    unknown-word marker is returned.
    """

    def __init__(self, table: FrequencyTable, order: Optional[int] = None):
        self.table = table
        self.order = order or table.order

    def _context(self, context: Sequence[str]) -> Context:
        if self.order == 1:
            return ()
        size = self.order - 1
        context = tuple(context)[-size:] if context else ()
        return (START_TOKEN,) * (size - len(context)) + context

    def distribution(self, context: Sequence[str]) -> CountTable:
        """Continuations of the longest suffix of ``context`` seen in training."""
        context = self._context(context)
        for start in range(len(context) + 1):
            followers = self.table.followers(context[start:])
            if followers.total() > 0:
                return followers
        return CountTable()

    def generate_word(self, context: Sequence[str] = (),
                      rng: Optional[random.Random] = None) -> str:
        rng = rng or random.Random()
        followers = self.distribution(context)
        total = followers.total()

        sample = rng.random()
        cumulative = 0.0
        for word, count in followers.items():
            cumulative += count / total
            if cumulative > sample:
                return word
        return UNKNOWN_TOKEN

    def generate_sentence(self, rng: Optional[random.Random] = None,
                          max_length: Optional[int] = None) -> List[str]:
        """
        Generate words until STOP is drawn.

        Termination relies on STOP being reachable from every context, which
        holds for any table trained on STOP-terminated sentences. ``max_length``
        optionally caps the number of returned words.
        """
        rng = rng or random.Random()
        context = self._context(())
        sentence = []

        while max_length is None or len(sentence) < max_length:
            word = self.generate_word(context, rng)
            if word == STOP_TOKEN:
                break
            if word not in SENTINELS:
                sentence.append(word)
            if self.order > 1:
                context = (context + (word,))[-(self.order - 1):]

        return sentence
