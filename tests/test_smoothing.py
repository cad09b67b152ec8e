import pytest

from ngramlm.corpus import START_TOKEN, STOP_TOKEN
from ngramlm.checking import ModelValidator
from ngramlm.counts import FrequencyOfFrequencies, FrequencyTable
from ngramlm.errors import SparseDataError, WeightSimplexViolation
from ngramlm.smoothing import (
    AbsoluteDiscountSmoother, GoodTuringSmoother, InterpolatedSmoother, KatzBackoffSmoother,
    KneserNeySmoother, SmoothingMethod, get_smoother, good_turing_count, validate_weights,
)

from conftest import GRADED_CORPUS, SMALL_CORPUS, WORKED_EXAMPLE, make_table


def vocabulary_sum(smoother, context):
    return sum(smoother.probability(context, w) for w in smoother.table.vocabulary)


def table_from_counts(unigrams, bigrams):
    """Bigram table built from explicit counts instead of sentences."""
    table = FrequencyTable(2)
    for word, count in unigrams.items():
        table.unigrams.increment(word, count)
    for (prev, word), count in bigrams.items():
        table.bigrams.increment((prev,), word, count)
    table.unigram_total = table.unigrams.total()
    table.bigram_total = table.bigrams.total()
    return table


# "a" is followed by every word of the vocabulary
SATURATED_UNIGRAMS = {"a": 1, "b": 2, "c": 3}
SATURATED_BIGRAMS = {("a", "a"): 1, ("a", "b"): 1, ("a", "c"): 1}


class TestAbsoluteDiscount:
    def test_worked_example_seen_events(self, worked_bigrams):
        smoother = AbsoluteDiscountSmoother(worked_bigrams, 2, discount=0.75)
        assert smoother.smoothed_count(("a",), "b") == pytest.approx(1.25)
        assert smoother.smoothed_count(("a",), "c") == pytest.approx(0.25)
        assert smoother.probability((START_TOKEN,), "a") == pytest.approx(0.75)
        assert smoother.probability(("a",), "b") == pytest.approx(1.25 / 3)
        assert smoother.probability(("b",), STOP_TOKEN) == pytest.approx(0.625)

    def test_worked_example_reserved_mass(self, worked_bigrams):
        smoother = AbsoluteDiscountSmoother(worked_bigrams, 2, discount=0.75)
        reserved = smoother.reserved_mass(("a",))
        assert reserved * worked_bigrams.context_total(("a",)) == pytest.approx(1.5)

    def test_worked_example_unseen_follower(self, worked_bigrams):
        smoother = AbsoluteDiscountSmoother(worked_bigrams, 2, discount=0.75)
        # alpha = 0.5, P(a) = 2.25/12, unseen lower mass = 6.75/12
        assert smoother.probability(("a",), "a") == pytest.approx(1 / 6)

    def test_unigram_lumps_unseen_mass(self, worked_bigrams):
        smoother = AbsoluteDiscountSmoother(worked_bigrams, 1, discount=0.75)
        assert smoother.diff == pytest.approx(3.75)
        assert smoother.probability((), "never-seen") == pytest.approx(3.75 / 12)
        assert smoother.context_mass(()) == pytest.approx(1.0)

    def test_unseen_context_falls_back_to_lower_order(self, worked_bigrams):
        smoother = AbsoluteDiscountSmoother(worked_bigrams, 2, discount=0.75)
        assert smoother.probability(("zzz",), "b") == pytest.approx(1.25 / 12)

    def test_unseen_word_has_positive_probability(self, worked_bigrams):
        smoother = AbsoluteDiscountSmoother(worked_bigrams, 2)
        assert smoother.probability(("a",), "never-seen") > 0

    def test_vocabulary_distribution_sums_to_one(self, worked_bigrams):
        smoother = AbsoluteDiscountSmoother(worked_bigrams, 2)
        for context in worked_bigrams.contexts(2):
            assert vocabulary_sum(smoother, context) == pytest.approx(1.0)

    def test_smoothed_counts_never_negative(self, small_trigrams):
        smoother = AbsoluteDiscountSmoother(small_trigrams, 3, discount=0.9)
        for context in small_trigrams.contexts(3):
            for word in small_trigrams.vocabulary:
                assert smoother.smoothed_count(context, word) >= 0

    @pytest.mark.parametrize("discount", [0.0, 1.0, -0.5, 1.5])
    def test_discount_range(self, worked_bigrams, discount):
        with pytest.raises(ValueError):
            AbsoluteDiscountSmoother(worked_bigrams, 2, discount=discount)

    def test_mass_sums(self, small_trigrams):
        smoother = AbsoluteDiscountSmoother(small_trigrams, 3)
        for context in small_trigrams.contexts(3):
            assert smoother.context_mass(context) == pytest.approx(1.0, abs=1e-9)

    def test_saturated_context_keeps_reserved_mass_for_unknown_words(self):
        table = table_from_counts(SATURATED_UNIGRAMS, SATURATED_BIGRAMS)
        smoother = AbsoluteDiscountSmoother(table, 2, discount=0.75)
        # alpha(a) = 0.75; nothing in the vocabulary is left to back off to
        assert smoother.lower.restricted_mass((), table.followers(("a",)).keys()) == 0.0
        assert smoother.probability(("a",), "unknown") == pytest.approx(0.75 * 2.25 / 6)
        assert vocabulary_sum(smoother, ("a",)) == pytest.approx(0.25)
        assert smoother.vocab_mass(("a",)) == pytest.approx(0.25)
        assert smoother.context_mass(("a",)) == pytest.approx(1.0)


class TestGoodTuring:
    def test_cutoff_identity(self):
        fof = FrequencyOfFrequencies({0: 50, 1: 10, 2: 5, 3: 2})
        for c in (3, 4, 17):
            assert good_turing_count(fof, c, cutoff=2) == c

    def test_monotone_in_frequency_ratio(self):
        estimates = [
            good_turing_count(FrequencyOfFrequencies({0: 50, 1: 10, 2: n2, 3: 2}), 1, cutoff=2)
            for n2 in (2, 4, 6, 8)
        ]
        assert estimates == sorted(estimates)
        assert estimates[0] < estimates[-1]

    def test_unseen_count(self):
        fof = FrequencyOfFrequencies({0: 50, 1: 10, 2: 5, 3: 2})
        assert good_turing_count(fof, 0, cutoff=2) == pytest.approx(10 / 50)

    def test_vanishing_denominator(self):
        # (k+1) N[k+1] == N[1]
        fof = FrequencyOfFrequencies({0: 50, 1: 6, 2: 5, 3: 2})
        with pytest.raises(SparseDataError):
            good_turing_count(fof, 1, cutoff=2)

    def test_unigram_estimates(self):
        table = make_table(WORKED_EXAMPLE, 1)
        smoother = GoodTuringSmoother(table, 1, cutoff=2)
        # N1=1, N2=1, N3=2: c*(1)=0.8, c*(2)=1.2 and the normaliser is 1
        assert smoother.discounted_count(1) == pytest.approx(0.8)
        assert smoother.discounted_count(2) == pytest.approx(1.2)
        assert smoother.norm == pytest.approx(1.0)
        assert smoother.probability((), "a") == pytest.approx(3 / 9)
        assert smoother.probability((), "c") == pytest.approx(0.8 / 9)
        assert smoother.reserved_mass(()) == pytest.approx(1 / 9)
        assert smoother.context_mass(()) == pytest.approx(1.0)

    def test_sparse_corpus_fails_loudly(self):
        table = make_table(WORKED_EXAMPLE, 1)
        # default unigram cutoff of 5 needs a bucket for count 6
        with pytest.raises(SparseDataError):
            GoodTuringSmoother(table, 1)

    def test_cutoff_must_be_positive(self):
        with pytest.raises(ValueError):
            GoodTuringSmoother(make_table(WORKED_EXAMPLE, 1), 1, cutoff=0)

    def test_bigram_estimates_with_default_cutoff(self):
        table = make_table(GRADED_CORPUS, 3)
        smoother = GoodTuringSmoother(table, 2)
        assert smoother.cutoff == 10
        # N[c] = 2 for c in 1..11, so c* = c - 0.1 below the cutoff
        assert smoother.discounted_count(5) == pytest.approx(4.9)
        assert smoother.discounted_count(11) == 11
        assert smoother.discounted_count(66) == 66
        assert smoother.norm == pytest.approx(198 / 197)
        assert smoother.context_mass(()) == pytest.approx(1.0)

    def test_bigram_conditional_distribution(self):
        table = make_table(GRADED_CORPUS, 3)
        smoother = GoodTuringSmoother(table, 2)
        conditional = sum(smoother.conditional_probability(("w5",), w) for w in table.vocabulary)
        assert conditional == pytest.approx(1.0)
        # the joint estimate of a single context is only a sliver of the table
        assert vocabulary_sum(smoother, ("w5",)) < 0.05

    def test_mass_check_sees_counts_changed_after_construction(self):
        table = make_table(WORKED_EXAMPLE, 1)
        smoother = GoodTuringSmoother(table, 1, cutoff=2)
        table.unigrams.increment("a")
        assert smoother.context_mass(()) == pytest.approx(10 / 9)
        assert ModelValidator(smoother).check_mass_sum() == pytest.approx(10 / 9)


KATZ_CORPUS = [["y", "x"], ["y"], ["z"]]


class TestKatz:
    def test_backs_off_to_good_turing(self):
        table = make_table(KATZ_CORPUS, 2)
        smoother = KatzBackoffSmoother(table, 2, cutoff=2)
        assert isinstance(smoother.lower, GoodTuringSmoother)
        # "y" is followed once by "x" and once by STOP
        assert smoother.probability(("y",), "x") == pytest.approx(0.125)

    def test_distributions_sum_to_one(self):
        table = make_table(KATZ_CORPUS, 2)
        smoother = KatzBackoffSmoother(table, 2, cutoff=2)
        for context in table.contexts(2):
            assert smoother.context_mass(context) == pytest.approx(1.0)
            assert vocabulary_sum(smoother, context) == pytest.approx(1.0)

    def test_needs_higher_order(self):
        with pytest.raises(ValueError):
            KatzBackoffSmoother(make_table(KATZ_CORPUS, 2), 1)

    def test_saturated_context(self):
        table = table_from_counts(SATURATED_UNIGRAMS, SATURATED_BIGRAMS)
        smoother = KatzBackoffSmoother(table, 2, cutoff=2)
        # Good-Turing unigrams: norm 1, unknown words get N1/N0 / total = 1/36
        assert smoother.lower.probability((), "unknown") == pytest.approx(1 / 36)
        assert smoother.probability(("a",), "unknown") == pytest.approx(0.75 / 36)
        assert vocabulary_sum(smoother, ("a",)) == pytest.approx(0.25)
        assert smoother.context_mass(("a",)) == pytest.approx(1.0)

    def test_trigram_default_lower_order(self):
        table = make_table(GRADED_CORPUS, 3)
        smoother = KatzBackoffSmoother(table, 3)
        assert isinstance(smoother.lower, GoodTuringSmoother)
        assert smoother.lower.order == 2
        assert smoother.lower.cutoff == 10

    def test_trigram_seen_context(self):
        table = make_table(GRADED_CORPUS, 3)
        smoother = KatzBackoffSmoother(table, 3)
        assert smoother.probability((START_TOKEN, "w5"), STOP_TOKEN) == pytest.approx(4.25 / 5)
        assert vocabulary_sum(smoother, (START_TOKEN, "w5")) == pytest.approx(1.0)

    def test_trigram_unseen_context_is_conditional(self):
        table = make_table(GRADED_CORPUS, 3)
        smoother = KatzBackoffSmoother(table, 3)
        assert ("w3", "w5") not in table.trigrams
        assert vocabulary_sum(smoother, ("w3", "w5")) == pytest.approx(1.0)
        # w5 is always followed by STOP
        assert smoother.probability(("w3", "w5"), STOP_TOKEN) > 0.9
        assert smoother.probability(("w3", "w5"), STOP_TOKEN) == pytest.approx(
            smoother.lower.conditional_probability(("w5",), STOP_TOKEN))

    def test_trigram_mass_check(self):
        smoother = KatzBackoffSmoother(make_table(GRADED_CORPUS, 3), 3)
        assert ModelValidator(smoother).check_mass_sum() == pytest.approx(1.0)


class TestKneserNey:
    def test_continuation_counts(self, small_trigrams):
        smoother = KneserNeySmoother(small_trigrams, 2)
        # "sat" follows cat and dog; "the" only follows <s>
        assert smoother.lower.continuations.count("sat") == 2
        assert smoother.lower.continuations.count("the") == 1

    @pytest.mark.parametrize("order", [2, 3])
    def test_mass_sums(self, small_trigrams, order):
        smoother = KneserNeySmoother(small_trigrams, order)
        for context in small_trigrams.contexts(order):
            assert smoother.context_mass(context) == pytest.approx(1.0)

    def test_continuation_distribution_sums_to_one(self, small_trigrams):
        smoother = KneserNeySmoother(small_trigrams, 2)
        assert smoother.lower.context_mass(()) == pytest.approx(1.0)


class TestInterpolation:
    def test_default_weights(self, small_trigrams):
        smoother = InterpolatedSmoother(small_trigrams, 3)
        assert smoother.weights == (0.6, 0.3, 0.1)
        assert len(smoother.components) == 3
        assert [c.order for c in smoother.components] == [3, 2, 1]

    def test_probability_is_weighted_sum(self, small_trigrams):
        smoother = InterpolatedSmoother(small_trigrams, 3, weights=(0.5, 0.3, 0.2))
        context = ("the", "cat")
        parts = smoother.component_probabilities(context, "sat")
        expected = 0.5 * parts[0] + 0.3 * parts[1] + 0.2 * parts[2]
        assert smoother.probability(context, "sat") == pytest.approx(expected)

    def test_mass_sums(self, small_trigrams):
        smoother = InterpolatedSmoother(small_trigrams, 3)
        for context in small_trigrams.contexts(3):
            assert smoother.context_mass(context) == pytest.approx(1.0)

    @pytest.mark.parametrize("weights", [
        (0.5, 0.5, 0.1),
        (1.2, -0.1, -0.1),
        (0.5, 0.5),
    ])
    def test_invalid_weights_rejected(self, small_trigrams, weights):
        with pytest.raises(WeightSimplexViolation):
            InterpolatedSmoother(small_trigrams, 3, weights=weights)

    def test_weight_violation_is_value_error(self):
        with pytest.raises(ValueError):
            validate_weights((0.9, 0.2), 2)

    def test_with_weights_keeps_components(self, small_trigrams):
        smoother = InterpolatedSmoother(small_trigrams, 3)
        other = smoother.with_weights((1.0, 0.0, 0.0))
        assert other.components is smoother.components
        assert smoother.weights == (0.6, 0.3, 0.1)
        assert other.probability(("the", "cat"), "sat") == \
            smoother.components[0].probability(("the", "cat"), "sat")


class TestFactory:
    @pytest.mark.parametrize("method, expected", [
        (SmoothingMethod.ABSOLUTE_DISCOUNT, AbsoluteDiscountSmoother),
        (SmoothingMethod.FIXED_INTERPOLATION, InterpolatedSmoother),
        (SmoothingMethod.VALIDATED_INTERPOLATION, InterpolatedSmoother),
        (SmoothingMethod.KNESER_NEY, KneserNeySmoother),
    ])
    def test_builds_strategy(self, small_trigrams, method, expected):
        smoother = get_smoother(method, small_trigrams)
        assert isinstance(smoother, expected)
        assert smoother.order == 3

    def test_only_validated_interpolation_is_tunable(self, small_trigrams):
        assert get_smoother(SmoothingMethod.VALIDATED_INTERPOLATION, small_trigrams).tunable
        assert not get_smoother(SmoothingMethod.FIXED_INTERPOLATION, small_trigrams).tunable

    def test_forwards_parameters(self, small_trigrams):
        smoother = get_smoother(SmoothingMethod.ABSOLUTE_DISCOUNT, small_trigrams, 2,
                                discount=0.5)
        assert smoother.order == 2
        assert smoother.discount == 0.5

    def test_order_above_table(self):
        table = make_table(SMALL_CORPUS, 2)
        with pytest.raises(ValueError):
            AbsoluteDiscountSmoother(table, 3)
