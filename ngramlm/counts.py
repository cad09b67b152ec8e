"""
Frequency Tables

Count containers used by the language models: flat count tables, tables
nested by context, the unigram/bigram/trigram frequency table built from a
corpus, and the frequency-of-frequencies table behind Good-Turing.
"""

import logging
from typing import Callable, Dict, Hashable, Iterable, Iterator, List, Optional, Sequence, Tuple

from .corpus import add_sentence_markers
from .errors import SparseDataError


logger = logging.getLogger(__name__)

Context = Tuple[str, ...]

MAX_ORDER = 3


class CountTable:
    """
    Mapping from a key to a non-negative count.

    Unseen keys have count 0. The total is kept alongside the counts so
    that it always equals the sum of the stored values.
    """

    def __init__(self, counts: Optional[Dict[Hashable, float]] = None):
        self._counts: Dict[Hashable, float] = {}
        self._total = 0.0
        if counts:
            for key, value in counts.items():
                self.increment(key, value)

    def increment(self, key: Hashable, amount: float = 1.0) -> None:
        if amount < 0:
            raise ValueError(f"counts cannot be decremented (got {amount})")
        self._counts[key] = self._counts.get(key, 0.0) + amount
        self._total += amount

    def count(self, key: Hashable) -> float:
        return self._counts.get(key, 0.0)

    def total(self) -> float:
        return self._total

    def keys(self):
        return self._counts.keys()

    def items(self):
        return self._counts.items()

    def copy(self) -> 'CountTable':
        return CountTable(self._counts)

    def __contains__(self, key) -> bool:
        return key in self._counts

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._counts)

    def __len__(self) -> int:
        return len(self._counts)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CountTable):
            return NotImplemented
        return self._counts == other._counts

    def __repr__(self) -> str:
        return f"CountTable({len(self)} keys, total={self._total})"


class NestedCountTable:
    """Mapping from a context to a CountTable of the tokens that follow it."""

    def __init__(self):
        self._tables: Dict[Context, CountTable] = {}
        self._total = 0.0

    def increment(self, context: Context, word: str, amount: float = 1.0) -> None:
        table = self._tables.get(context)
        if table is None:
            table = self._tables[context] = CountTable()
        table.increment(word, amount)
        self._total += amount

    def count(self, context: Context, word: str) -> float:
        table = self._tables.get(context)
        return table.count(word) if table is not None else 0.0

    def get(self, context: Context) -> CountTable:
        """Followers of ``context``; an empty table if it was never seen."""
        table = self._tables.get(context)
        return table if table is not None else CountTable()

    def context_total(self, context: Context) -> float:
        table = self._tables.get(context)
        return table.total() if table is not None else 0.0

    def total(self) -> float:
        return self._total

    def contexts(self) -> List[Context]:
        return list(self._tables)

    def triples(self) -> Iterator[Tuple[Context, str, float]]:
        for context, table in self._tables.items():
            for word, count in table.items():
                yield context, word, count

    def copy(self) -> 'NestedCountTable':
        nested = NestedCountTable()
        for context, word, count in self.triples():
            nested.increment(context, word, count)
        return nested

    def __contains__(self, context) -> bool:
        return context in self._tables

    def __len__(self) -> int:
        return len(self._tables)

    def __eq__(self, other) -> bool:
        if not isinstance(other, NestedCountTable):
            return NotImplemented
        return self._tables == other._tables


class FrequencyTable:
    """
    Unigram, bigram and trigram counts collected from a corpus.

    Sentences are padded with ``order - 1`` START tokens and one STOP token.
    Bigrams are keyed by the one-token context ``(prev,)`` and trigrams by
    ``(prev2, prev1)``, so every order can be addressed with a context tuple
    whose length is ``order - 1``.
    """

    def __init__(self, order: int = 3):
        if order < 1 or order > MAX_ORDER:
            raise ValueError(f"order must be between 1 and {MAX_ORDER}")
        self.order = order
        self.reset()

    def reset(self) -> None:
        self.unigrams = CountTable()
        self.bigrams = NestedCountTable()
        self.trigrams = NestedCountTable()
        self.unigram_total = 0.0
        self.bigram_total = 0.0
        self.trigram_total = 0.0

    def train(self, sentences: Iterable[Sequence[str]],
              progress_callback: Optional[Callable[[int, int], None]] = None) -> None:
        """
        Count n-grams in the training data, replacing any previous counts.

        Args:
            sentences: Tokenized sentences without sentinels
            progress_callback: Optional callback(current, total) for progress
        """
        self.reset()
        total = len(sentences) if hasattr(sentences, '__len__') else 0

        idx = 0
        for idx, sentence in enumerate(sentences, start=1):
            padded = add_sentence_markers(sentence, self.order)

            for i, word in enumerate(padded):
                self.unigrams.increment(word)
                if self.order >= 2 and i >= 1:
                    self.bigrams.increment((padded[i - 1],), word)
                if self.order >= 3 and i >= 2:
                    self.trigrams.increment((padded[i - 2], padded[i - 1]), word)

            if progress_callback and idx % 100 == 0:
                progress_callback(idx, total)

        if progress_callback:
            progress_callback(idx, total or idx)

        self.unigram_total = sum(count for _, count in self.unigrams.items())
        self.bigram_total = sum(count for _, _, count in self.bigrams.triples())
        self.trigram_total = sum(count for _, _, count in self.trigrams.triples())

        logger.debug("Counted %d unigram, %d bigram and %d trigram tokens",
                     self.unigram_total, self.bigram_total, self.trigram_total)

    # -- uniform access by context length ------------------------------------

    def _nested(self, order: int) -> NestedCountTable:
        if order == 2:
            return self.bigrams
        if order == 3:
            return self.trigrams
        raise ValueError(f"no nested table for order {order}")

    def followers(self, context: Context) -> CountTable:
        """Tokens observed right after ``context`` with their counts."""
        if not context:
            return self.unigrams
        return self._nested(len(context) + 1).get(context)

    def count(self, context: Context, word: str) -> float:
        if not context:
            return self.unigrams.count(word)
        return self._nested(len(context) + 1).count(context, word)

    def context_total(self, context: Context) -> float:
        if not context:
            return self.unigram_total
        return self._nested(len(context) + 1).context_total(context)

    def total(self, order: int) -> float:
        return {1: self.unigram_total, 2: self.bigram_total, 3: self.trigram_total}[order]

    def contexts(self, order: int) -> List[Context]:
        if order == 1:
            return [()]
        return self._nested(order).contexts()

    def entries(self, order: int) -> Iterator[Tuple[Context, str, float]]:
        """Every observed (context, word, count) cell of the given order."""
        if order == 1:
            for word, count in self.unigrams.items():
                yield (), word, count
        else:
            yield from self._nested(order).triples()

    @property
    def vocabulary(self):
        return self.unigrams.keys()

    @property
    def vocab_size(self) -> int:
        return len(self.unigrams)

    def copy(self) -> 'FrequencyTable':
        table = FrequencyTable(self.order)
        table.unigrams = self.unigrams.copy()
        table.bigrams = self.bigrams.copy()
        table.trigrams = self.trigrams.copy()
        table.unigram_total = self.unigram_total
        table.bigram_total = self.bigram_total
        table.trigram_total = self.trigram_total
        return table

    def __eq__(self, other) -> bool:
        if not isinstance(other, FrequencyTable):
            return NotImplemented
        return (self.order == other.order
                and self.unigrams == other.unigrams
                and self.bigrams == other.bigrams
                and self.trigrams == other.trigrams)


class FrequencyOfFrequencies:
    """
    How many distinct n-grams were seen exactly ``c`` times, for each ``c``.

    Bucket 0 holds the raw token total of the order rather than the true
    number of unseen n-grams. This is an approximation, kept because the
    Good-Turing estimates of this package are calibrated against it.
    """

    def __init__(self, buckets: Optional[Dict[int, int]] = None):
        self._buckets: Dict[int, int] = dict(buckets or {})

    @classmethod
    def from_table(cls, table: FrequencyTable, order: int) -> 'FrequencyOfFrequencies':
        buckets = {0: int(table.total(order))}
        for _, _, count in table.entries(order):
            c = int(count)
            buckets[c] = buckets.get(c, 0) + 1
        return cls(buckets)

    def has_bucket(self, c: int) -> bool:
        return self._buckets.get(c, 0) > 0

    def bucket(self, c: int) -> int:
        """Size of bucket ``c``; a missing or empty bucket is a sparse-data error."""
        if not self.has_bucket(c):
            raise SparseDataError(
                f"no n-gram was observed exactly {c} time(s); the corpus is too "
                f"sparse for this Good-Turing cutoff (use a smaller cutoff or more data)",
                bucket=c)
        return self._buckets[c]

    def get(self, c: int, default: int = 0) -> int:
        return self._buckets.get(c, default)

    def items(self):
        return sorted(self._buckets.items())

    def __len__(self) -> int:
        return len(self._buckets)

    def __repr__(self) -> str:
        return f"FrequencyOfFrequencies({dict(self.items())})"
