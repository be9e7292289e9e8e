"""
Tests for metrics.py - delta sign convention and MCID achievement
"""
import pytest

from metrics import (
    LOWER_IS_BETTER,
    calculate_outcome_metrics,
    compute_delta,
    get_mcid_threshold,
    improvement_pct,
    is_lower_better,
    is_mcid_achieved,
)


# =============================================================================
# TEST: direction lookup / compute_delta()
# =============================================================================
class TestDeltaSign:
    """Positive delta always means improvement"""

    @pytest.mark.parametrize("index_type", sorted(LOWER_IS_BETTER))
    def test_lower_is_better_uses_baseline_minus_discharge(self, index_type):
        assert is_lower_better(index_type)
        assert compute_delta(index_type, 40, 20) == 20
        assert compute_delta(index_type, 20, 40) == -20

    @pytest.mark.parametrize("index_type", ["LEFS", "RPQ", "UNKNOWN_SCALE"])
    def test_higher_is_better_uses_discharge_minus_baseline(self, index_type):
        assert not is_lower_better(index_type)
        assert compute_delta(index_type, 40, 55) == 15
        assert compute_delta(index_type, 55, 40) == -15

    def test_lower_is_better_set_matches_disability_indices(self):
        assert LOWER_IS_BETTER == {"NDI", "ODI", "QuickDASH"}


# =============================================================================
# TEST: get_mcid_threshold()
# =============================================================================
class TestThresholdLookup:

    def test_known_instruments(self):
        assert get_mcid_threshold("NDI") == 10
        assert get_mcid_threshold("ODI") == 6
        assert get_mcid_threshold("LEFS") == 9

    def test_missing_threshold_defaults_to_zero(self):
        assert get_mcid_threshold("PSFS") == 0
        assert get_mcid_threshold("") == 0


# =============================================================================
# TEST: is_mcid_achieved()
# =============================================================================
class TestMcidBoundary:

    def test_exact_threshold_is_achieved(self):
        assert is_mcid_achieved(10, 10) is True

    def test_just_below_threshold_is_not_achieved(self):
        assert is_mcid_achieved(9.99, 10) is False

    def test_uses_absolute_delta(self):
        """abs(delta) is compared, so a large decline also reads as achieved"""
        assert is_mcid_achieved(-12, 10) is True

    def test_zero_threshold_any_nonzero_delta_achieved(self):
        assert is_mcid_achieved(0.5, 0) is True
        assert is_mcid_achieved(-0.5, 0) is True

    def test_zero_threshold_zero_delta_achieved(self):
        """0 >= 0 holds; kept as the documented boundary"""
        assert is_mcid_achieved(0, 0) is True


# =============================================================================
# TEST: calculate_outcome_metrics() / improvement_pct()
# =============================================================================
class TestCalculateOutcomeMetrics:

    def test_ndi_end_to_end_example(self):
        delta, threshold, achieved = calculate_outcome_metrics("NDI", 40, 20)
        assert delta == 20
        assert threshold == 10
        assert achieved is True

    def test_threshold_override(self):
        delta, threshold, achieved = calculate_outcome_metrics("LEFS", 40, 45, mcid_threshold=4)
        assert (delta, threshold, achieved) == (5, 4, True)

    def test_override_of_zero_is_respected(self):
        _, threshold, achieved = calculate_outcome_metrics("NDI", 40, 39, mcid_threshold=0)
        assert threshold == 0
        assert achieved is True

    def test_improvement_pct(self):
        assert improvement_pct(2, 10) == pytest.approx(20.0)

    def test_improvement_pct_negative_when_worse(self):
        assert improvement_pct(-6, 10) == pytest.approx(-60.0)
        assert improvement_pct(-30, 10) == pytest.approx(-300.0)

    def test_improvement_pct_zero_threshold_guard(self):
        assert improvement_pct(5, 0) == 0.0
