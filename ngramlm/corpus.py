"""
Corpus Loading and Preprocessing

This module handles loading the Brown corpus and preparing token sequences
for n-gram model training. The language model itself only ever sees lists
of tokens; everything here is a producer of those lists.
"""

import logging
import random
import string
from typing import List, Optional, Sequence, Tuple

import nltk
from nltk.corpus import brown


logger = logging.getLogger(__name__)

# Special tokens
START_TOKEN = "<s>"
STOP_TOKEN = "</s>"
UNKNOWN_TOKEN = "<UNK>"

SENTINELS = (START_TOKEN, STOP_TOKEN)


def ensure_nltk_data():
    """Download the Brown corpus if it is not installed yet."""
    try:
        nltk.data.find('corpora/brown')
    except LookupError:
        logger.info("Downloading Brown corpus...")
        nltk.download('brown', quiet=True)


def preprocess_text(text: str, lowercase: bool = True,
                    remove_punctuation: bool = False) -> List[str]:
    """
    Preprocess raw text into a list of tokens.

    Args:
        text: Raw input text
        lowercase: Whether to lowercase the text
        remove_punctuation: Whether to remove punctuation

    Returns:
        List of preprocessed tokens
    """
    if lowercase:
        text = text.lower()

    if remove_punctuation:
        text = text.translate(str.maketrans('', '', string.punctuation))

    return text.split()


def add_sentence_markers(tokens: Sequence[str], n: int) -> List[str]:
    """
    Pad a sentence for an n-gram model of order ``n``.

    One START token is added per context slot (``n - 1`` of them) and a
    single STOP token closes the sentence. A unigram model only gets STOP.
    """
    return [START_TOKEN] * (n - 1) + list(tokens) + [STOP_TOKEN]


def load_brown_corpus(categories: Optional[List[str]] = None,
                      lowercase: bool = True,
                      min_sentence_length: int = 1) -> Tuple[List[List[str]], dict]:
    """
    Load the Brown corpus and return preprocessed sentences.

    Args:
        categories: Optional list of Brown corpus categories to load
                   (e.g., ['news', 'fiction', 'science_fiction'])
                   If None, loads all categories.
        lowercase: Whether to lowercase the text
        min_sentence_length: Minimum number of words in a sentence

    Returns:
        Tuple of (list of sentences as token lists, corpus statistics dict)
    """
    ensure_nltk_data()

    if categories:
        sents = brown.sents(categories=categories)
    else:
        sents = brown.sents()

    processed_sentences = []
    total_tokens = 0

    for sent in sents:
        tokens = [w.lower() if lowercase else w for w in sent]
        # Sentinel strings must never appear as vocabulary
        tokens = [w for w in tokens if w not in SENTINELS]

        if len(tokens) >= min_sentence_length:
            processed_sentences.append(tokens)
            total_tokens += len(tokens)

    stats = {
        'num_sentences': len(processed_sentences),
        'total_tokens': total_tokens,
        'categories': categories or brown.categories()
    }
    logger.info("Loaded %d sentences (%d tokens) from the Brown corpus",
                stats['num_sentences'], total_tokens)

    return processed_sentences, stats


def get_brown_categories() -> List[str]:
    """Return list of available Brown corpus categories."""
    ensure_nltk_data()
    return brown.categories()


def split_corpus(sentences: Sequence[List[str]],
                 validation_fraction: float = 0.1,
                 test_fraction: float = 0.1,
                 seed: Optional[int] = None
                 ) -> Tuple[List[List[str]], List[List[str]], List[List[str]]]:
    """
    Shuffle sentences and split them into train / validation / test parts.

    Args:
        sentences: Tokenized sentences
        validation_fraction: Share of sentences held out for weight tuning
        test_fraction: Share of sentences held out for evaluation
        seed: Seed for the shuffle, for reproducible splits

    Returns:
        Tuple of (train, validation, test) sentence lists
    """
    if validation_fraction < 0 or test_fraction < 0 \
            or validation_fraction + test_fraction >= 1:
        raise ValueError("validation and test fractions must be non-negative "
                         "and leave room for training data")

    shuffled = list(sentences)
    random.Random(seed).shuffle(shuffled)

    n_test = int(len(shuffled) * test_fraction)
    n_validation = int(len(shuffled) * validation_fraction)

    test = shuffled[:n_test]
    validation = shuffled[n_test:n_test + n_validation]
    train = shuffled[n_test + n_validation:]

    return train, validation, test
