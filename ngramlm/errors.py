"""
Exceptions raised by the language model core.

Arithmetic edge cases (missing frequency buckets, empty contexts, bad
interpolation weights) are turned into these types inside the smoothing
code so they never surface as raw ``ZeroDivisionError`` or NaN.
"""


class LanguageModelError(Exception):
    """Base class for all language model errors."""


class SparseDataError(LanguageModelError, ArithmeticError):
    """
    A Good-Turing estimate needs a frequency-of-frequencies bucket that the
    training data does not provide.

    The training corpus is too sparse for the configured cutoff; either train
    on more data or use a smaller cutoff.
    """

    def __init__(self, message: str, bucket: int = None):
        super().__init__(message)
        self.bucket = bucket


class EmptyContextError(LanguageModelError, ZeroDivisionError):
    """A context was never observed in training, so it has no total count."""

    def __init__(self, context):
        super().__init__(f"context {context!r} was never observed in training")
        self.context = context


class WeightSimplexViolation(LanguageModelError, ValueError):
    """Interpolation weights are negative or do not sum to one."""
