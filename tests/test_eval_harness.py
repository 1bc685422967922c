from eval.harness import TripCase, run_lead_time_eval, run_trip


def test_alarm_lead_time_close_to_alert_time():
    r = run_trip(TripCase("bus", 5.0, 30.0, 5, seed=3))
    assert r["fired"] == 1
    assert abs(r["lead_min"] - 5.0) <= 1.0


def test_eval_summary_shape():
    out = run_lead_time_eval([TripCase("a", 3.0, 30.0, 2, seed=1)])
    assert set(out) == {"results", "hit_rate", "admission_ratio", "tolerance_min"}
    assert 0.0 <= out["hit_rate"] <= 1.0
    assert out["results"][0]["trip"] == "a"
