"""
N-gram Language Model Package

Smoothed n-gram language models: frequency counting, Good-Turing, Katz
backoff, absolute discounting, Kneser-Ney and linear interpolation, with
sentence scoring, self-consistency checks and sentence generation.
"""

from .model import NGramModel
from .smoothing import SmoothingMethod, get_smoother
from .counts import FrequencyTable, FrequencyOfFrequencies
from .errors import EmptyContextError, SparseDataError, WeightSimplexViolation
from .corpus import START_TOKEN, STOP_TOKEN, UNKNOWN_TOKEN

__version__ = "0.1.0"
__all__ = [
    "NGramModel", "SmoothingMethod", "get_smoother",
    "FrequencyTable", "FrequencyOfFrequencies",
    "SparseDataError", "EmptyContextError", "WeightSimplexViolation",
    "START_TOKEN", "STOP_TOKEN", "UNKNOWN_TOKEN",
]
