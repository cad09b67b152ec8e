import random

import pytest

from ngramlm.counts import FrequencyTable


WORKED_EXAMPLE = [["a", "b"], ["a", "c"], ["a", "b"]]

SMALL_CORPUS = [
    ["the", "cat", "sat"],
    ["the", "dog", "sat"],
    ["a", "cat", "ran"],
    ["the", "cat", "ran"],
    ["a", "dog", "sat", "down"],
    ["the", "dog", "ran", "away"],
]

HELD_OUT = [
    ["the", "cat", "sat", "down"],
    ["a", "dog", "ran"],
    ["the", "dog", "sat"],
]


# Word wN appears in N one-word sentences, so every Good-Turing bucket up to
# 11 is filled and the default cutoffs are usable.
GRADED_CORPUS = [["w%d" % c] for c in range(1, 12) for _ in range(c)]


def make_table(sentences, order):
    table = FrequencyTable(order)
    table.train(sentences)
    return table


@pytest.fixture
def worked_bigrams():
    return make_table(WORKED_EXAMPLE, 2)


@pytest.fixture
def small_trigrams():
    return make_table(SMALL_CORPUS, 3)


@pytest.fixture
def rng():
    return random.Random(1234)
