import numpy as np
import pytest

from swingai.consensus import weighted_consensus


def test_identical_estimates_agree_fully():
    """Estimates at the same value give that value with agreement 1."""
    result = weighted_consensus([(40, 0.8), (40, 0.5), (40, 0.9)])

    assert result.scalar == pytest.approx(40.0)
    assert result.agreement == pytest.approx(1.0)
    assert result.mean_confidence == pytest.approx((0.8 + 0.5 + 0.9) / 3)
    assert result.confidence == pytest.approx(result.mean_confidence)


def test_weighted_mean_favours_confident_estimate():
    """Merged value is the confidence-weighted mean."""
    result = weighted_consensus([(10, 0.9), (20, 0.1)])

    assert result.scalar == pytest.approx(11.0)
    assert 0.0 < result.agreement < 1.0
    assert result.total_weight == pytest.approx(1.0)


def test_zero_confidence_estimates_do_not_move_the_value():
    """An estimate without evidence does not shift the value but still counts toward agreement."""
    with_dead = weighted_consensus([(50, 0.6), (52, 0.6), (0, 0.0)])
    without = weighted_consensus([(50, 0.6), (52, 0.6)])

    assert with_dead.scalar == pytest.approx(without.scalar)
    assert without.agreement == pytest.approx(1.0 - 1.0 / 2.0)
    # deviations 1, 1 and 51 from the merged frame 51
    assert with_dead.agreement == pytest.approx(1.0 - (53.0 / 3.0) / 52.0)
    assert with_dead.mean_confidence < without.mean_confidence


def test_all_zero_confidence_falls_back_to_first_value():
    """No evidence at all yields the first value with zero agreement."""
    result = weighted_consensus([(7, 0.0), (90, 0.0)])

    assert result.scalar == 7.0
    assert result.agreement == 0.0
    assert result.confidence == 0.0


def test_vector_estimates():
    """3-D positions merge component-wise."""
    result = weighted_consensus([((0.0, 0.0, 0.0), 1.0), ((1.0, 2.0, 0.0), 1.0)])

    np.testing.assert_allclose(result.value, [0.5, 1.0, 0.0])


def test_spread_lowers_agreement():
    """Wider disagreement gives lower agreement."""
    tight = weighted_consensus([(100, 0.5), (101, 0.5), (102, 0.5)])
    loose = weighted_consensus([(100, 0.5), (120, 0.5), (140, 0.5)])

    assert loose.agreement < tight.agreement


def test_empty_estimates_raise():
    """Merging nothing is a programming error."""
    with pytest.raises(ValueError):
        weighted_consensus([])
