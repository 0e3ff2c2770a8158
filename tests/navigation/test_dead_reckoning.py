"""Tests for the dead-reckoning predictor."""

import pytest

from wayfinder.navigation import DeadReckoningPredictor, NavigationSettings
from wayfinder.spatial import Position


class TestDeadReckoningPredictor:
    """Tests for DeadReckoningPredictor."""

    def test_velocity_from_two_fixes(self) -> None:
        """Test velocity = displacement / elapsed time."""
        predictor = DeadReckoningPredictor(NavigationSettings())

        assert predictor.observe(Position(0, 0, 0), Position(1.0, 0, 0.5), elapsed_s=0.5)
        assert predictor.velocity == pytest.approx((2.0, 1.0))

    def test_predict_applies_latency(self) -> None:
        """Test extrapolation by the latency compensation time, height unchanged."""
        predictor = DeadReckoningPredictor(NavigationSettings(latency_compensation=0.1))
        predictor.observe(Position(0, 0, 0), Position(1.0, 0, 0), elapsed_s=1.0)

        predicted = predictor.predict(Position(1.0, 2.0, 0.0))

        assert predicted.x == pytest.approx(1.1)
        assert predicted.y == 2.0
        assert predicted.z == pytest.approx(0.0)

    def test_small_movement_keeps_previous_velocity(self) -> None:
        """Test that jitter below the threshold does not overwrite the estimate."""
        predictor = DeadReckoningPredictor()
        predictor.observe(Position(0, 0, 0), Position(1.0, 0, 0), elapsed_s=1.0)

        assert not predictor.observe(Position(1.0, 0, 0), Position(1.05, 0, 0), elapsed_s=1.0)
        assert predictor.velocity == pytest.approx((1.0, 0.0))

    def test_tiny_time_delta_ignored(self) -> None:
        """Test that near-simultaneous fixes do not produce a huge velocity."""
        predictor = DeadReckoningPredictor()

        assert not predictor.observe(Position(0, 0, 0), Position(1.0, 0, 0), elapsed_s=0.01)
        assert predictor.velocity == (0.0, 0.0)

    def test_zero_velocity_prediction_is_identity(self) -> None:
        """Test that a fresh predictor returns the fix itself."""
        fix = Position(3.0, 1.0, -2.0)
        assert DeadReckoningPredictor().predict(fix) == fix

    def test_reset_velocity(self) -> None:
        """Test standing-still reset."""
        predictor = DeadReckoningPredictor()
        predictor.observe(Position(0, 0, 0), Position(1.0, 0, 0), elapsed_s=1.0)
        predictor.reset_velocity()

        assert predictor.velocity == (0.0, 0.0)
