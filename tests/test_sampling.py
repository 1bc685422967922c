import pytest

from src.tracking.models import Coordinate, PositionSample
from src.tracking.sampling import AdaptiveSampler

KM_PER_DEG_LAT = 111.19492664455873
S = 1_000_000_000


def _north(base: Coordinate, km: float, ts_ns: int) -> PositionSample:
    return PositionSample(base.lat + km / KM_PER_DEG_LAT, base.lng, ts_ns)


def test_first_sample_is_admitted():
    s = AdaptiveSampler()
    assert s.should_admit(PositionSample(1.0, 2.0, 5 * S))


def test_time_and_movement_admission():
    s = AdaptiveSampler()
    s.reset(600)
    home = Coordinate(52.0, 13.0)
    s.mark_evaluated(home, 0)

    assert not s.should_admit(_north(home, 0.02, 5 * S))      # 20 m, 5 s
    assert not s.should_admit(_north(home, 0.049, 599 * S))   # just short on both
    assert s.should_admit(_north(home, 0.0, 600 * S))         # interval elapsed
    assert s.should_admit(_north(home, 0.06, 5 * S))          # moved 60 m


def test_far_interval_is_a_third_of_eta_seconds():
    s = AdaptiveSampler()
    assert s.compute_interval(120.0, 10, 600) == 2400
    assert s.compute_interval(119.99999999, 10, 600) == 2400
    assert s.compute_interval(31.0, 10, 600) == 620


def test_close_interval_shrinks_by_three_with_floor():
    s = AdaptiveSampler()
    s.reset(2400)
    assert s.next_interval(25.0, 10) == 800
    assert s.next_interval(20.0, 10) == 266
    assert s.next_interval(15.0, 10) == 88
    assert s.next_interval(10.0, 10) == 30
    assert s.next_interval(5.0, 10) == 30


@pytest.mark.parametrize("eta", [0.0, 0.1, 1.0, 5.0, 29.9, 30.0, 31.0, 1e4])
@pytest.mark.parametrize("alert", [1, 10, 30])
@pytest.mark.parametrize("prev", [0, 30, 45, 90, 3600])
def test_interval_never_below_floor(eta, alert, prev):
    s = AdaptiveSampler()
    assert s.compute_interval(eta, alert, prev) >= 30


def test_reset_never_goes_below_floor():
    s = AdaptiveSampler(min_interval_s=30)
    s.reset(5)
    assert s.interval_s == 30
    assert s.last_eval_ts_ns is None


def test_invalid_parameters():
    with pytest.raises(ValueError):
        AdaptiveSampler(min_interval_s=0)
    with pytest.raises(ValueError):
        AdaptiveSampler(factor=1)
