"""
Smoothing Methods for N-gram Language Models

This module implements the discounting strategies that turn raw n-gram counts
into probabilities that leave room for unseen events.

All strategies share one FrequencyTable and answer the same questions:

* ``smoothed_count(context, word)``: the discounted count of an event
* ``probability(context, word)``: the smoothed probability of ``word``
* ``reserved_mass(context)``: probability held back for unseen words

Contexts are tuples of preceding tokens. A strategy of order ``n`` looks at
the last ``n - 1`` of them (padding short contexts with START).
"""

import copy
import logging
from enum import Enum
from typing import Dict, Iterable, Optional, Sequence, Tuple

from .corpus import START_TOKEN
from .counts import Context, CountTable, FrequencyOfFrequencies, FrequencyTable
from .errors import EmptyContextError, SparseDataError, WeightSimplexViolation


logger = logging.getLogger(__name__)

DEFAULT_DISCOUNT = 0.75

# Highest order first
DEFAULT_FIXED_WEIGHTS: Dict[int, Tuple[float, ...]] = {
    1: (1.0,),
    2: (0.75, 0.25),
    3: (0.6, 0.3, 0.1),
}

WEIGHT_TOLERANCE = 1e-9


class SmoothingMethod(Enum):
    """Available smoothing methods."""
    GOOD_TURING = "good_turing"
    ABSOLUTE_DISCOUNT = "absolute_discount"
    KATZ_BACKOFF = "katz_backoff"
    FIXED_INTERPOLATION = "fixed_interpolation"
    VALIDATED_INTERPOLATION = "validated_interpolation"
    KNESER_NEY = "kneser_ney"


def validate_weights(weights: Sequence[float], size: int) -> Tuple[float, ...]:
    """Check that ``weights`` is a point of the probability simplex."""
    weights = tuple(float(w) for w in weights)
    if len(weights) != size:
        raise WeightSimplexViolation(
            f"expected {size} interpolation weights, got {len(weights)}")
    if any(w < 0 for w in weights):
        raise WeightSimplexViolation(f"interpolation weights must be non-negative: {weights}")
    if abs(sum(weights) - 1.0) > WEIGHT_TOLERANCE:
        raise WeightSimplexViolation(f"interpolation weights must sum to 1: {weights}")
    return weights


def good_turing_count(freq_of_freq: FrequencyOfFrequencies, c: float, cutoff: int) -> float:
    """
    Good-Turing adjusted count with a cutoff.

    Counts above the cutoff ``k`` are trusted as they are. Below it,

        c* = ((c+1) N[c+1]/N[c] - c (k+1) N[k+1]/N[1]) / (1 - (k+1) N[k+1]/N[1])

    and an unseen event gets N[1]/N[0].
    """
    if c > cutoff:
        return c

    if c == 0:
        n0 = freq_of_freq.get(0)
        if n0 <= 0:
            # Empty table: nothing to discount
            return 0.0
        return freq_of_freq.bucket(1) / n0

    c = int(c)
    n1 = freq_of_freq.bucket(1)
    nc = freq_of_freq.bucket(c)
    nc1 = freq_of_freq.bucket(c + 1)
    nk1 = freq_of_freq.bucket(cutoff + 1)

    tail = (cutoff + 1) * nk1 / n1
    if tail == 1.0:
        raise SparseDataError(
            f"Good-Turing denominator vanishes for cutoff {cutoff} "
            f"((k+1) N[k+1] == N[1]); use a different cutoff", bucket=cutoff + 1)
    return ((c + 1) * (nc1 / nc) - c * tail) / (1.0 - tail)


class Smoother:
    """Base class for smoothing implementations."""

    tunable = False

    def __init__(self, table: FrequencyTable, order: int):
        if order < 1 or order > table.order:
            raise ValueError(
                f"order must be between 1 and the table order {table.order}, got {order}")
        self.table = table
        self.order = order

    def _context(self, context: Iterable[str]) -> Context:
        """Trim or pad ``context`` to the ``order - 1`` tokens this model uses."""
        if self.order == 1:
            return ()
        size = self.order - 1
        context = tuple(context)[-size:] if context else ()
        if len(context) < size:
            context = (START_TOKEN,) * (size - len(context)) + context
        return context

    def smoothed_count(self, context: Context, word: str) -> float:
        """Return the discounted count of ``word`` after ``context``."""
        raise NotImplementedError

    def probability(self, context: Context, word: str) -> float:
        """Return smoothed probability."""
        raise NotImplementedError

    def reserved_mass(self, context: Context) -> float:
        """Probability held back in ``context`` for words never seen there."""
        raise NotImplementedError

    def vocab_mass(self, context: Context) -> float:
        """Total probability of the training vocabulary in ``context``."""
        return sum(self.probability(context, word) for word in self.table.vocabulary)

    def restricted_mass(self, context: Context, excluded) -> float:
        """Probability mass of the vocabulary words that are not in ``excluded``."""
        if len(excluded) >= self.table.vocab_size:
            return 0.0
        mass = self.vocab_mass(context) - sum(self.probability(context, w) for w in excluded)
        return max(mass, 0.0)

    def conditional_probability(self, context: Context, word: str) -> float:
        """P(word | context) when this model is the target of a backoff."""
        return self.probability(context, word)

    def context_mass(self, context: Context) -> float:
        """Probability of every word observed after ``context`` plus the reserved mass."""
        context = self._context(context)
        observed = self.table.followers(context)
        mass = sum(self.probability(context, word) for word in observed)
        return mass + self.reserved_mass(context)

    def mass_contexts(self):
        """Contexts over which the model's distributions can be checked."""
        return self.table.contexts(self.order)


class GoodTuringSmoother(Smoother):
    """
    Good-Turing Smoothing

    Adjusts counts based on the frequency of frequencies, with a cutoff ``k``
    above which counts are left alone. Probabilities are joint over all
    n-grams of the order:

        P(context, w) = c*(count) * norm / total

    where ``norm`` rescales the adjusted counts (plus one lumped unseen
    event) back to the observed total.
    """

    def __init__(self, table: FrequencyTable, order: int = 1, cutoff: Optional[int] = None):
        super().__init__(table, order)
        self.cutoff = cutoff if cutoff is not None else (5 if order == 1 else 10)
        if self.cutoff < 1:
            raise ValueError("Good-Turing cutoff must be at least 1")
        self.total = table.total(order)
        self.freq_of_freq = FrequencyOfFrequencies.from_table(table, order)
        self.norm = self._normalizer()
        logger.debug("Good-Turing order %d: cutoff=%d norm=%.6f", order, self.cutoff, self.norm)

    def discounted_count(self, c: float) -> float:
        return good_turing_count(self.freq_of_freq, c, self.cutoff)

    def _normalizer(self) -> float:
        if self.total <= 0:
            return 1.0
        mass = 0.0
        for c, n in self.freq_of_freq.items():
            if c == 0:
                mass += 1.0
            else:
                mass += n * self.discounted_count(c)
        return self.total / mass

    def smoothed_count(self, context: Context, word: str) -> float:
        return self.discounted_count(self.table.count(self._context(context), word))

    def probability(self, context: Context, word: str) -> float:
        if self.total <= 0:
            return 0.0
        return self.smoothed_count(context, word) * self.norm / self.total

    def reserved_mass(self, context: Context) -> float:
        if self.total <= 0:
            return 0.0
        return self.norm / self.total

    def vocab_mass(self, context: Context) -> float:
        if self.total <= 0:
            return 0.0
        observed = self.table.followers(self._context(context))
        counts = sum(self.discounted_count(c) for _, c in observed.items())
        counts += (self.table.vocab_size - len(observed)) * self.discounted_count(0)
        return counts * self.norm / self.total

    def conditional_probability(self, context: Context, word: str) -> float:
        # Above unigrams the estimate is joint; divide by the context marginal
        if self.order == 1:
            return self.probability(context, word)
        marginal = self.vocab_mass(context)
        if marginal <= 0:
            return 0.0
        return self.probability(context, word) / marginal

    def context_mass(self, context: Context) -> float:
        # Joint estimate: the whole table is a single distribution. Summing
        # cell by cell checks the cached normaliser against the current counts.
        mass = sum(self.probability(ctx, word) for ctx, word, _ in self.table.entries(self.order))
        return mass + self.reserved_mass(context)

    def mass_contexts(self):
        return [()]


class AbsoluteDiscountSmoother(Smoother):
    """
    Absolute Discounting

    Subtracts a fixed discount ``d`` from every observed count.

    For unigrams the harvested mass forms a single lumped bucket for unknown
    words:

        P(w) = (count(w) - d) / total          if w was seen
        P(w) = (total - sum(count - d)) / total  otherwise

    For higher orders the mass reserved in a context is handed to the next
    lower order, renormalised over the words not observed in that context:

        P(w|ctx) = (count(ctx,w) - d) / count(ctx)                  if seen
        P(w|ctx) = alpha(ctx) * P_lower(w) / sum_{unseen v} P_lower(v)  otherwise
    """

    def __init__(self, table: FrequencyTable, order: int = 1,
                 discount: float = DEFAULT_DISCOUNT, lower: Optional[Smoother] = None):
        super().__init__(table, order)
        if not 0 < discount < 1:
            raise ValueError(f"discount must be strictly between 0 and 1, got {discount}")
        self.discount = discount

        if order > 1 and lower is None:
            lower = AbsoluteDiscountSmoother(table, order - 1, discount)
        self.lower = lower if order > 1 else None

        if order == 1:
            self.total = table.unigram_total
            seen = sum(self._discounted(c) for _, c in table.unigrams.items())
            self.diff = self.total - seen

    def _discounted(self, count: float) -> float:
        return max(count - self.discount, 0.0)

    def _context_total(self, context: Context) -> float:
        total = self.table.context_total(context)
        if total <= 0:
            raise EmptyContextError(context)
        return total

    def smoothed_count(self, context: Context, word: str) -> float:
        context = self._context(context)
        count = self.table.count(context, word)
        if count > 0:
            return self._discounted(count)
        if self.order == 1:
            return self.diff
        return self.probability(context, word) * self.table.context_total(context)

    def probability(self, context: Context, word: str) -> float:
        context = self._context(context)
        if self.order == 1:
            if self.total <= 0:
                return 0.0
            return self.smoothed_count(context, word) / self.total

        try:
            total = self._context_total(context)
        except EmptyContextError:
            return self.lower.conditional_probability(context[1:], word)

        count = self.table.count(context, word)
        if count > 0:
            return self._discounted(count) / total
        return self._backoff(context, word)

    def backoff_weight(self, context: Context) -> float:
        """alpha(ctx) = 1 - sum over observed words of (count - d) / count(ctx)."""
        context = self._context(context)
        try:
            total = self._context_total(context)
        except EmptyContextError:
            return 1.0
        observed = self.table.followers(context)
        return 1.0 - sum(self._discounted(c) / total for _, c in observed.items())

    def _backoff(self, context: Context, word: str) -> float:
        alpha = self.backoff_weight(context)
        lower_context = context[1:]
        observed = self.table.followers(context)
        unseen = self.lower.restricted_mass(lower_context, observed.keys())
        if unseen <= 0:
            # Every vocabulary word was observed here; what is left goes to
            # out-of-vocabulary words without renormalisation.
            return alpha * self.lower.conditional_probability(lower_context, word)
        return alpha * self.lower.probability(lower_context, word) / unseen

    def reserved_mass(self, context: Context) -> float:
        if self.order == 1:
            return self.diff / self.total if self.total > 0 else 0.0
        return self.backoff_weight(context)

    def vocab_mass(self, context: Context) -> float:
        context = self._context(context)
        if self.order == 1:
            return (self.total - self.diff) / self.total if self.total > 0 else 0.0
        if self.table.context_total(context) <= 0:
            return self.lower.vocab_mass(context[1:])

        alpha = self.backoff_weight(context)
        observed = self.table.followers(context)
        unseen = self.lower.restricted_mass(context[1:], observed.keys())
        return 1.0 - alpha + (alpha if unseen > 0 else 0.0)


class KatzBackoffSmoother(AbsoluteDiscountSmoother):
    """
    Katz Backoff

    Observed n-grams keep their discounted relative frequency; the reserved
    mass of a context is redistributed according to a Good-Turing estimate
    of the next lower order, restricted to words not already observed in
    the context so no mass is counted twice.
    """

    def __init__(self, table: FrequencyTable, order: int = 3,
                 discount: float = DEFAULT_DISCOUNT, cutoff: Optional[int] = None):
        if order < 2:
            raise ValueError("Katz backoff needs an order of at least 2")
        lower = GoodTuringSmoother(table, order - 1, cutoff)
        super().__init__(table, order, discount, lower=lower)


class ContinuationSmoother(Smoother):
    """
    Lower-order distribution of Kneser-Ney smoothing.

    A word's weight is the number of distinct words it follows, discounted
    the same way as the unigram base case of absolute discounting.
    """

    def __init__(self, table: FrequencyTable, discount: float = DEFAULT_DISCOUNT):
        super().__init__(table, 1)
        if table.order < 2:
            raise ValueError("continuation counts need bigram counts")
        self.discount = discount
        self.continuations = CountTable()
        for _, word, _ in table.entries(2):
            self.continuations.increment(word)
        self.total = self.continuations.total()
        seen = sum(max(c - discount, 0.0) for _, c in self.continuations.items())
        self.diff = self.total - seen

    def smoothed_count(self, context: Context, word: str) -> float:
        count = self.continuations.count(word)
        if count > 0:
            return max(count - self.discount, 0.0)
        return self.diff

    def probability(self, context: Context, word: str) -> float:
        if self.total <= 0:
            return 0.0
        return self.smoothed_count(context, word) / self.total

    def reserved_mass(self, context: Context) -> float:
        return self.diff / self.total if self.total > 0 else 0.0

    def vocab_mass(self, context: Context) -> float:
        if self.total <= 0:
            return 0.0
        without = sum(1 for w in self.table.vocabulary if w not in self.continuations)
        return (self.total - self.diff + without * self.diff) / self.total

    def context_mass(self, context: Context) -> float:
        mass = sum(self.probability((), word) for word in self.continuations)
        return mass + self.reserved_mass(context)


class KneserNeySmoother(AbsoluteDiscountSmoother):
    """
    Kneser-Ney Smoothing

    Absolute discounting whose lowest order is the continuation distribution
    (how many different contexts a word completes) instead of raw unigram
    frequency.
    """

    def __init__(self, table: FrequencyTable, order: int = 2,
                 discount: float = DEFAULT_DISCOUNT):
        if order < 2:
            raise ValueError("Kneser-Ney smoothing needs an order of at least 2")
        if order == 2:
            lower = ContinuationSmoother(table, discount)
        else:
            lower = KneserNeySmoother(table, order - 1, discount)
        super().__init__(table, order, discount, lower=lower)


class InterpolatedSmoother(Smoother):
    """
    Linear Interpolation

    P(w|ctx) = a1 * P_n(w|ctx) + a2 * P_{n-1}(w|ctx') + ... + an * P_1(w)

    Each component is an absolute-discount backoff model of its order. The
    weights are either fixed or tuned on held-out data (see ``tuning``).
    """

    def __init__(self, table: FrequencyTable, order: int = 3,
                 weights: Optional[Sequence[float]] = None,
                 discount: float = DEFAULT_DISCOUNT, tunable: bool = False):
        super().__init__(table, order)
        self.discount = discount
        self.tunable = tunable
        if weights is None:
            weights = DEFAULT_FIXED_WEIGHTS[order]
        self.weights = validate_weights(weights, order)

        self.components = []
        component = AbsoluteDiscountSmoother(table, order, discount)
        while component is not None:
            self.components.append(component)
            component = component.lower

    def with_weights(self, weights: Sequence[float]) -> 'InterpolatedSmoother':
        """Same components, different weights."""
        smoother = copy.copy(self)
        smoother.weights = validate_weights(weights, self.order)
        return smoother

    def rebuild(self, table: FrequencyTable) -> 'InterpolatedSmoother':
        """Same configuration over a different frequency table."""
        return InterpolatedSmoother(table, self.order, self.weights, self.discount, self.tunable)

    def component_probabilities(self, context: Context, word: str) -> Tuple[float, ...]:
        return tuple(c.probability(context, word) for c in self.components)

    def smoothed_count(self, context: Context, word: str) -> float:
        context = self._context(context)
        return self.probability(context, word) * self.table.context_total(context)

    def probability(self, context: Context, word: str) -> float:
        return sum(w * p for w, p in zip(self.weights, self.component_probabilities(context, word)))

    def reserved_mass(self, context: Context) -> float:
        return sum(w * c.reserved_mass(context) for w, c in zip(self.weights, self.components))

    def vocab_mass(self, context: Context) -> float:
        return sum(w * c.vocab_mass(context) for w, c in zip(self.weights, self.components))

    def context_mass(self, context: Context) -> float:
        return sum(w * c.context_mass(context) for w, c in zip(self.weights, self.components))


def get_smoother(method: SmoothingMethod, table: FrequencyTable,
                 order: Optional[int] = None, **kwargs) -> Smoother:
    """Factory function to create the appropriate smoother."""
    order = order or table.order
    discount = kwargs.get('discount', DEFAULT_DISCOUNT)

    if method == SmoothingMethod.GOOD_TURING:
        return GoodTuringSmoother(table, order, cutoff=kwargs.get('cutoff'))
    elif method == SmoothingMethod.ABSOLUTE_DISCOUNT:
        return AbsoluteDiscountSmoother(table, order, discount=discount)
    elif method == SmoothingMethod.KATZ_BACKOFF:
        return KatzBackoffSmoother(table, order, discount=discount, cutoff=kwargs.get('cutoff'))
    elif method == SmoothingMethod.FIXED_INTERPOLATION:
        return InterpolatedSmoother(table, order, weights=kwargs.get('weights'),
                                    discount=discount)
    elif method == SmoothingMethod.VALIDATED_INTERPOLATION:
        return InterpolatedSmoother(table, order, weights=kwargs.get('weights'),
                                    discount=discount, tunable=True)
    elif method == SmoothingMethod.KNESER_NEY:
        return KneserNeySmoother(table, order, discount=discount)
    else:
        raise ValueError(f"Unknown smoothing method: {method}")
