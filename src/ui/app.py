from __future__ import annotations

import logging
from pathlib import Path as _Path
from typing import List

import folium
import streamlit as st

from src.alerts.sink import ALERT_MESSAGE, ToneAlertSink, tone_wav_bytes
from src.geocode.nominatim import NominatimConfig, search_places
from src.infra.config import DEFAULTS, load_config
from src.sensors.motion import MotionDetector
from src.sensors.track_io import TrackRecord, iter_track
from src.synth.synthesize import JourneySpec, destination_north_of, synthesize_journey
from src.tracking.errors import WakeStopError
from src.tracking.models import EngineConfig
from src.tracking.replay import NS_PER_S
from src.tracking.session import Session

LOG = logging.getLogger("ui.app")

DEFAULT_ORIGIN = (52.5200, 13.4050)


def _cfg() -> dict:
    try:
        return load_config()
    except ValueError as e:
        st.warning(f"config.yaml ignored: {e}")
        return {k: dict(v) for k, v in DEFAULTS.items()}


def _new_session(cfg: dict) -> Session:
    alert = cfg["alert"]
    sink = ToneAlertSink(
        wav_path=_Path(alert["wav_path"]),
        cooldown_s=float(alert["cooldown_s"]),
        sample_rate=int(alert["sample_rate"]),
    )
    return Session(sink, EngineConfig.from_mapping(cfg["engine"]))


def _render_map(sess: Session, trail: List[tuple]) -> str:
    snap = sess.snapshot()
    pts = list(trail)
    if snap.destination is not None:
        pts.append((snap.destination.lat, snap.destination.lng))
    if pts:
        clat = sum(p[0] for p in pts) / len(pts)
        clon = sum(p[1] for p in pts) / len(pts)
    else:
        clat, clon = DEFAULT_ORIGIN

    m = folium.Map(location=[clat, clon], zoom_start=12 if pts else 6)
    if len(trail) >= 2:
        folium.PolyLine(trail, color="blue", weight=3, opacity=0.6).add_to(m)
    if snap.current_location is not None:
        folium.CircleMarker(
            location=(snap.current_location.lat, snap.current_location.lng),
            radius=7, color="blue", fill=True, fill_color="blue", fill_opacity=0.9,
            popup=folium.Popup(html="<b>You</b>", max_width=200),
        ).add_to(m)
    if snap.destination is not None:
        folium.Marker(
            location=(snap.destination.lat, snap.destination.lng),
            popup=folium.Popup(html=f"<b>{snap.destination.name or 'Destination'}</b>", max_width=250),
            icon=folium.Icon(color="red"),
        ).add_to(m)
    return m.get_root().render()


def _load_uploaded_track(upload) -> List[TrackRecord]:
    text = upload.getvalue().decode("utf-8", errors="replace")
    return sorted(iter_track(text.splitlines()), key=lambda r: r.sample.ts_ns)


def _step(sess: Session, detector: MotionDetector, records: List[TrackRecord], n: int) -> None:
    """Advance the replay by `n` samples, ticking the ETA between them."""
    for _ in range(n):
        i = st.session_state.idx
        if i >= len(records):
            return
        rec = records[i]
        prev = st.session_state.prev_ts
        if prev is not None:
            for _ in range(max(0, (rec.sample.ts_ns - prev) // NS_PER_S)):
                sess.tick(1.0)
        st.session_state.prev_ts = rec.sample.ts_ns

        moving = rec.moving
        if moving is None and (rec.accel is not None or rec.linear_accel is not None):
            moving = detector.update(rec.accel, rec.linear_accel)
        sess.feed_motion(moving)

        was_alerted = sess.has_alerted
        if sess.feed_position(rec.sample):
            st.session_state.admitted += 1
        st.session_state.trail.append((rec.sample.lat, rec.sample.lng))
        if sess.has_alerted and not was_alerted:
            st.session_state.alarm = True
        st.session_state.idx = i + 1


def main() -> None:
    st.set_page_config(page_title="WakeStop", layout="wide")
    cfg = _cfg()

    if "session" not in st.session_state:
        st.session_state.session = _new_session(cfg)
        st.session_state.detector = MotionDetector(
            threshold_mps2=float(cfg["motion"]["threshold_mps2"]),
            gravity_mps2=float(cfg["motion"]["gravity_mps2"]),
        )
        st.session_state.records = []
        st.session_state.idx = 0
        st.session_state.prev_ts = None
        st.session_state.trail = []
        st.session_state.admitted = 0
        st.session_state.alarm = False
        st.session_state.places = []
    sess: Session = st.session_state.session

    # ---- Sidebar: destination ----
    st.sidebar.subheader("Destination")
    query = st.sidebar.text_input("Search a place", value="")
    if st.sidebar.button("Search") and query.strip():
        st.session_state.places = search_places(query, NominatimConfig.from_mapping(cfg["geocode"]))
        if not st.session_state.places:
            st.sidebar.info("No places found.")
    places = st.session_state.places
    if places:
        labels = [p.name for p in places]
        pick = st.sidebar.selectbox("Results", options=range(len(places)), format_func=lambda i: labels[i])
        if st.sidebar.button("Use this destination"):
            p = places[int(pick)]
            LOG.info("destination picked from search: %s", p.name)
            sess.set_destination(p.lat, p.lng, p.name)
            st.toast("Destination set!")

    # ---- Sidebar: track source ----
    st.sidebar.divider()
    st.sidebar.subheader("Position feed")
    upload = st.sidebar.file_uploader("Track JSONL", type=["jsonl", "json", "txt"])
    if upload is not None and st.sidebar.button("Load track"):
        st.session_state.records = _load_uploaded_track(upload)
        st.session_state.idx = 0
        st.session_state.prev_ts = None
        st.session_state.trail = []
        if st.session_state.records:
            sess.feed_position(st.session_state.records[0].sample)
    dist_km = st.sidebar.slider("Demo trip length (km)", 1.0, 30.0, 10.0, 0.5)
    speed_kmh = st.sidebar.slider("Demo speed (km/h)", 3.0, 80.0, 30.0, 1.0)
    if st.sidebar.button("Synthesize demo trip"):
        dlat, dlng = destination_north_of(DEFAULT_ORIGIN[0], DEFAULT_ORIGIN[1], dist_km)
        st.session_state.records = synthesize_journey(
            JourneySpec(DEFAULT_ORIGIN[0], DEFAULT_ORIGIN[1], dlat, dlng, speed_kmh=speed_kmh)
        )
        sess.set_destination(dlat, dlng, "Demo stop")
        sess.feed_position(st.session_state.records[0].sample)
        st.session_state.idx = 0
        st.session_state.prev_ts = None
        st.session_state.trail = []

    records: List[TrackRecord] = st.session_state.records

    # ---- Sidebar: alarm ----
    st.sidebar.divider()
    st.sidebar.subheader("Alert time")
    minutes = st.sidebar.slider("Wake me this many minutes before arrival", 1, 30,
                                int(cfg["session"]["alert_time_min"]), 1, disabled=sess.is_tracking)
    c_start, c_stop = st.sidebar.columns(2)
    if c_start.button("Set alarm", disabled=sess.is_tracking, use_container_width=True):
        try:
            sess.start(int(minutes))
            st.session_state.alarm = False
            st.toast(f"Tracking started! You'll be alerted {minutes} minutes before arrival.")
        except WakeStopError as e:
            st.sidebar.error(str(e).capitalize())
    if c_stop.button("Stop", disabled=not sess.is_tracking, use_container_width=True):
        sess.stop()
        st.session_state.alarm = False
        st.toast("Tracking stopped")

    # ---- Main panel ----
    st.title("WakeStop")
    snap = sess.snapshot()

    if st.session_state.alarm:
        st.error(ALERT_MESSAGE)
        st.audio(tone_wav_bytes(int(cfg["alert"]["sample_rate"])), format="audio/wav", autoplay=True)

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("ETA (min)", f"{snap.eta_minutes:.1f}" if snap.is_tracking else "-")
    m2.metric("Distance (km)", f"{snap.current_distance:.2f}" if snap.is_tracking else "-")
    m3.metric("Speed (km/h)", f"{snap.effective_speed * 60.0:.1f}")
    m4.metric("Next check (s)", snap.next_sample_interval_s)
    st.caption(
        f"Moving: {'yes' if snap.is_moving else 'no'} · "
        f"samples {st.session_state.idx}/{len(records)} · admitted {st.session_state.admitted} · "
        f"destination: {snap.destination.name if snap.destination else 'not set'}"
    )

    s1, s2, s3 = st.columns(3)
    n_step = 0
    if s1.button("Next sample", disabled=not records):
        n_step = 1
    if s2.button("Next minute", disabled=not records):
        n_step = 12
    if s3.button("Run to end", disabled=not records):
        n_step = len(records)
    if n_step:
        _step(sess, st.session_state.detector, records, n_step)
        st.rerun()

    st.components.v1.html(_render_map(sess, st.session_state.trail), height=480)

    with st.expander("Session snapshot"):
        st.json(snap.to_dict())


if __name__ == "__main__":
    main()
