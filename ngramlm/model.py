"""
N-gram Language Model Implementation

This module contains the NGramModel class that ties counting, smoothing,
weight tuning, scoring, checking and generation together behind one object.
"""

import logging
import math
import random
import threading
from typing import Dict, List, Optional, Sequence, Tuple

from .checking import DEFAULT_CHECK_SAMPLES, ModelValidator
from .corpus import SENTINELS, START_TOKEN, UNKNOWN_TOKEN
from .counts import MAX_ORDER, FrequencyTable
from .generation import SequenceGenerator
from .scoring import SentenceScorer, safe_log
from .smoothing import Smoother, SmoothingMethod, get_smoother
from .tuning import DEFAULT_TUNING_STEP, WeightTuner


logger = logging.getLogger(__name__)


class NGramModel:
    """
    N-gram Language Model

    A model is constructed empty, trained once on a corpus, optionally has
    its interpolation weights tuned on held-out data, and is then queried.

    ``train`` and ``tune_weights`` take the model's lock and must not overlap
    with queries; once they return, probability, scoring and generation
    calls only read state and may run from several threads at once.

    Attributes:
        n: The order of the n-gram model (1, 2 or 3)
        smoothing_method: The smoothing method to use
        table: Counts collected by the last call to ``train``
        smoother: The smoothing strategy built over ``table``
    """

    def __init__(self, n: int = 3,
                 smoothing: SmoothingMethod = SmoothingMethod.FIXED_INTERPOLATION,
                 smoothing_params: Optional[Dict] = None):
        """
        Initialize the n-gram model.

        Args:
            n: Order of the model (default: 3 for trigram)
            smoothing: Smoothing method to use
            smoothing_params: Additional parameters for the smoother
                (``discount``, ``cutoff``, ``weights``)
        """
        if n < 1 or n > MAX_ORDER:
            raise ValueError(f"n must be between 1 and {MAX_ORDER}")

        self.n = n
        self.smoothing_method = smoothing
        self.smoothing_params = smoothing_params or {}

        self.table = FrequencyTable(n)
        self.smoother: Optional[Smoother] = None

        self.is_trained = False
        self.training_stats: Dict = {}
        self._lock = threading.Lock()

    def _require_trained(self) -> None:
        if not self.is_trained:
            raise RuntimeError("Model must be trained before it can be queried")

    # -- training -------------------------------------------------------------

    def train(self, sentences: Sequence[Sequence[str]],
              progress_callback=None) -> Dict:
        """
        Train the n-gram model on sentences.

        Args:
            sentences: List of tokenized sentences (no sentinels)
            progress_callback: Optional callback(current, total) for progress

        Returns:
            Dictionary of training statistics
        """
        with self._lock:
            table = FrequencyTable(self.n)
            table.train(sentences, progress_callback)
            smoother = get_smoother(self.smoothing_method, table, self.n,
                                    **self.smoothing_params)

            # Counts and strategy are replaced together
            self.table, self.smoother = table, smoother
            self.is_trained = True

            self.training_stats = {
                'n': self.n,
                'smoothing': self.smoothing_method.value,
                'vocab_size': table.vocab_size,
                'num_sentences': len(sentences),
                'total_tokens': table.unigram_total,
                'unique_ngrams': sum(1 for _ in table.entries(self.n)),
                'unique_contexts': len(table.contexts(self.n)),
            }
            if hasattr(smoother, 'weights'):
                self.training_stats['weights'] = list(smoother.weights)

        logger.info("Trained %d-gram %s model on %d sentences (%d tokens, vocabulary %d)",
                    self.n, self.smoothing_method.value, len(sentences),
                    table.unigram_total, table.vocab_size)
        return self.training_stats

    def tune_weights(self, held_out: Sequence[Sequence[str]], method: str = "grid",
                     step: float = DEFAULT_TUNING_STEP) -> Optional[Tuple[float, ...]]:
        """
        Tune interpolation weights on held-out sentences.

        Only the validated interpolation strategy has tunable weights; for
        every other strategy this is a no-op returning None. The trained
        counts are left untouched.
        """
        self._require_trained()
        with self._lock:
            if not self.smoother.tunable:
                logger.info("%s smoothing has no weights to tune", self.smoothing_method.value)
                return None

            weights = WeightTuner(step=step, method=method).tune(held_out, self.smoother)
            self.smoother = self.smoother.with_weights(weights)
            self.training_stats['weights'] = list(weights)
            return weights

    # -- probabilities --------------------------------------------------------

    def probability(self, word: str, context: Tuple[str, ...] = ()) -> float:
        """
        Calculate P(word | context) using the trained model.

        Args:
            word: The word to calculate probability for
            context: The preceding words (only the last n-1 are used)

        Returns:
            Probability of word given context
        """
        self._require_trained()
        return self.smoother.probability(tuple(context), word)

    def log_probability(self, word: str, context: Tuple[str, ...] = ()) -> float:
        """Calculate log probability (base e) of word given context."""
        return safe_log(self.probability(word, context))

    def word_probability(self, sentence: Sequence[str], index: int) -> float:
        """Probability of ``sentence[index]`` given the words before it."""
        self._require_trained()
        return SentenceScorer(self.smoother).word_probability(sentence, index)

    def sentence_probability(self, sentence: Sequence[str], log: bool = False) -> float:
        """
        Calculate the probability of a sentence.

        The sentence is padded with START and STOP tokens first. A sentence
        the model cannot explain at all gets 0.0 (or -inf in log space).

        Args:
            sentence: List of tokens
            log: If True, return log probability

        Returns:
            Probability (or log probability) of the sentence
        """
        self._require_trained()
        scorer = SentenceScorer(self.smoother)
        return scorer.log_probability(sentence) if log else scorer.probability(sentence)

    def perplexity(self, sentences: Sequence[Sequence[str]]) -> float:
        """
        Calculate perplexity on a set of sentences.

        Perplexity = 2^(-1/N * sum(log2(P(w_i|context))))

        Args:
            sentences: List of tokenized sentences

        Returns:
            Perplexity score (lower is better)
        """
        self._require_trained()
        scorer = SentenceScorer(self.smoother)
        total_log_prob = 0.0
        total_words = 0

        for sent in sentences:
            for context, word in scorer.positions(sent):
                prob = self.smoother.probability(context, word)
                if prob <= 0:
                    return float('inf')
                total_log_prob += math.log2(prob)
                total_words += 1

        if total_words == 0:
            return float('inf')
        return 2 ** (-total_log_prob / total_words)

    def check_mass_sum(self, samples: int = DEFAULT_CHECK_SAMPLES,
                       rng: Optional[random.Random] = None) -> float:
        """Sampled sum of a context's distribution that deviates most from 1."""
        self._require_trained()
        return ModelValidator(self.smoother, samples).check_mass_sum(rng)

    def get_next_word_distribution(self, context: Tuple[str, ...],
                                   top_k: int = 10) -> List[Tuple[str, float]]:
        """
        Get the probability distribution over next words given context.

        Args:
            context: The context tuple
            top_k: Number of top words to return

        Returns:
            List of (word, probability) tuples, sorted by probability
        """
        self._require_trained()
        probs = [
            (word, self.smoother.probability(tuple(context), word))
            for word in self.table.vocabulary
            if word != START_TOKEN
        ]
        probs.sort(key=lambda x: x[1], reverse=True)
        return probs[:top_k]

    # -- generation -----------------------------------------------------------

    def generate_word(self, context: Sequence[str] = (),
                      rng: Optional[random.Random] = None) -> str:
        """Sample the word following ``context``."""
        self._require_trained()
        return SequenceGenerator(self.table, self.n).generate_word(context, rng)

    def generate_sentence(self, rng: Optional[random.Random] = None,
                          max_length: Optional[int] = None) -> List[str]:
        """
        Generate a sentence, sampling words until STOP.

        Args:
            rng: Source of randomness (a fresh ``random.Random`` if omitted)
            max_length: Optional cap on the number of generated words

        Returns:
            List of generated tokens without sentinels
        """
        self._require_trained()
        return SequenceGenerator(self.table, self.n).generate_sentence(rng, max_length)

    def get_top_words(self, top_k: int = 100) -> List[Tuple[str, float]]:
        """Get the most frequent words based on unigram counts."""
        self._require_trained()
        words = [(w, c) for w, c in self.table.unigrams.items()
                 if w not in SENTINELS and w != UNKNOWN_TOKEN]
        words.sort(key=lambda x: x[1], reverse=True)
        return words[:top_k]
