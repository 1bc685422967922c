import pytest

from src.sensors.motion import MotionDetector, acceleration_magnitude


def test_linear_acceleration_is_preferred():
    mag = acceleration_magnitude((0.0, 0.0, 9.8), linear_accel=(3.0, 4.0, 0.0))
    assert mag == pytest.approx(5.0)


def test_gravity_is_subtracted_from_raw_vector():
    assert acceleration_magnitude((0.0, 0.0, 9.8)) == pytest.approx(0.0)
    assert acceleration_magnitude((0.0, 0.0, 12.8)) == pytest.approx(3.0)


def test_incomplete_vectors_are_unusable():
    assert acceleration_magnitude((None, 1.0, 2.0), linear_accel=(1.0, None, 0.0)) is None
    assert acceleration_magnitude(None) is None
    # falls through to the gravity vector when linear is incomplete
    assert acceleration_magnitude((0.0, 0.0, 9.8), linear_accel=(None, None, None)) == pytest.approx(0.0)


def test_detector_threshold_and_missing_readings():
    det = MotionDetector(threshold_mps2=1.5)
    assert det.update((0.0, 0.0, 9.8)) is False
    assert det.update(None, linear_accel=(2.0, 0.0, 0.0)) is True
    assert det.last_magnitude == pytest.approx(2.0)
    # missing axes keep the previous state
    assert det.update((None, None, None)) is True
    assert det.update(None, linear_accel=(1.0, 0.5, 0.0)) is False
