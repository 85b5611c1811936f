"""
Tests for the scoring engine.

Tests:
- Points table for every correctness/confidence pair
- Hint deductions (no floor)
- Calibration bonus boundary
- Round scoring examples
"""

import pytest

from ..engine_core.action import RoundSubmission
from ..engine_core.scoring import (
    accuracy_percent,
    calibration_bonus,
    compute_points,
    final_score,
    hint_deduction,
    net_points,
    score_round,
)
from ..engine_core.state import Claim, Verdict


class TestComputePoints:
    """Tests for the confidence points table."""

    @pytest.mark.parametrize("correct,confidence,expected", [
        (True, 1, 1),
        (True, 2, 2),
        (True, 3, 3),
        (False, 1, -1),
        (False, 2, -1),
        (False, 3, -2),
    ])
    def test_points_table(self, correct, confidence, expected):
        """Every combination matches the table exactly."""
        assert compute_points(correct, confidence) == expected


class TestHints:
    """Tests for hint deductions."""

    def test_each_hint_costs_two(self):
        assert hint_deduction(0) == 0
        assert hint_deduction(3) == 6

    def test_net_points_can_go_negative(self):
        """No floor is applied after hint deductions."""
        assert net_points(True, 1, 2) == -3
        assert net_points(False, 3, 1) == -4


class TestCalibration:
    """Tests for the calibration bonus."""

    def test_difference_of_two_earns_bonus(self):
        assert calibration_bonus(12, 10) == 3
        assert calibration_bonus(8, 10) == 3

    def test_difference_of_three_earns_nothing(self):
        assert calibration_bonus(13, 10) == 0
        assert calibration_bonus(7, 10) == 0

    def test_exact_prediction(self):
        assert calibration_bonus(0, 0) == 3

    def test_final_score_examples(self):
        assert calibration_bonus(15, 14) == 3
        assert final_score(15, 14) == 18
        assert calibration_bonus(15, 10) == 0
        assert final_score(15, 10) == 15


class TestScoreRound:
    """Tests for scoring a submission against a claim."""

    def test_correct_high_confidence(self):
        claim = Claim("c1", "A claim", Verdict.TRUE)
        result = score_round(claim, RoundSubmission(Verdict.TRUE, 3), round_number=1)

        assert result.correct is True
        assert result.points == 3
        assert result.claim_id == "c1"
        assert result.round == 1

    def test_incorrect_high_confidence(self):
        claim = Claim("c1", "A claim", Verdict.FALSE)
        result = score_round(claim, RoundSubmission(Verdict.TRUE, 3), round_number=2)

        assert result.correct is False
        assert result.points == -2

    def test_hints_are_counted_and_deducted(self):
        claim = Claim("c1", "A claim", Verdict.MIXED)
        submission = RoundSubmission(Verdict.MIXED, 2, hints_used=("source", "context"))
        result = score_round(claim, submission, round_number=1)

        assert result.hints_used == 2
        assert result.points == 2 - 4

    def test_string_verdict_is_coerced(self):
        submission = RoundSubmission("FALSE", 1)
        assert submission.verdict is Verdict.FALSE

    def test_invalid_confidence_rejected(self):
        with pytest.raises(ValueError):
            RoundSubmission(Verdict.TRUE, 4)


class TestAccuracy:
    """Tests for accuracy percentages."""

    def test_rounds_half_up(self):
        assert accuracy_percent(1, 8) == 13  # 12.5
        assert accuracy_percent(2, 3) == 67

    def test_no_rounds(self):
        assert accuracy_percent(0, 0) == 0
