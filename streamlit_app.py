import base64
import os
import time

import requests
import streamlit as st

API_BASE_URL = os.environ.get("API_BASE_URL", "http://localhost:8000")
POLL_INTERVAL_S = 0.5
POLL_TIMEOUT_S = 90

st.title("Travel with AI")

_INTENT_BUTTONS = [
    ("history", "History"),
    ("restaurants", "Restaurants"),
    ("tourist_spots", "Tourist spots"),
    ("safety", "Safety"),
]


def _api(method, path, **kwargs):
    resp = requests.request(method, f"{API_BASE_URL}{path}", timeout=30, **kwargs)
    resp.raise_for_status()
    return resp.json() if resp.content else None


def _new_session():
    previous = st.session_state.get("session_id")
    if previous:
        try:
            _api("DELETE", f"/sessions/{previous}")
        except requests.exceptions.HTTPError as e:
            # 404: already evicted, or the server restarted
            if e.response is None or e.response.status_code != 404:
                raise
    data = _api("POST", "/sessions")
    st.session_state.session_id = data["session_id"]
    st.session_state.output_text = data["output_text"]
    st.session_state.trace = []


def _wait_for_answer(session_id, request_id):
    """Poll the session state until the request leaves Loading."""
    deadline = time.time() + POLL_TIMEOUT_S
    while time.time() < deadline:
        data = _api("GET", f"/sessions/{session_id}/state")
        if data["request_id"] >= request_id and data["state"]["status"] != "loading":
            return data
        time.sleep(POLL_INTERVAL_S)
    return None


def _send(intent, prompt=None, photo=None):
    body = {"intent": intent, "prompt": prompt, "location": st.session_state.get("manual_location") or None}
    if photo is not None:
        body["photo_base64"] = base64.b64encode(photo).decode("ascii")
    session_id = st.session_state.session_id
    with st.spinner("Loading..."):
        try:
            accepted = _api("POST", f"/sessions/{session_id}/prompt", json=body)
            data = _wait_for_answer(session_id, accepted["request_id"])
            if data is None:
                st.session_state.output_text = "Still waiting for the answer. Please try again."
            else:
                st.session_state.output_text = data["output_text"]
                st.session_state.trace = data.get("trace", [])
        except requests.exceptions.ConnectionError:
            st.session_state.output_text = "Could not reach the server. Is the API running?"
        except requests.exceptions.Timeout:
            st.session_state.output_text = "The request timed out. Please try again."
        except requests.exceptions.HTTPError as e:
            st.session_state.output_text = f"Server error ({e.response.status_code}). Please try again later."


# Initialise session state
if "session_id" not in st.session_state:
    try:
        _new_session()
    except requests.exceptions.RequestException:
        st.error("Could not reach the server. Is the API running?")
        st.stop()

if st.sidebar.button("New session"):
    _new_session()
    st.rerun()

show_debug = st.sidebar.toggle("Show pipeline trace", value=False)

# ── Location ─────────────────────────────────────────────────────────────────

st.subheader("Your Location")
with st.sidebar.expander("Report GPS fix"):
    lat = st.number_input("Latitude", min_value=-90.0, max_value=90.0, value=55.9701, format="%.4f")
    lon = st.number_input("Longitude", min_value=-180.0, max_value=180.0, value=-3.1894, format="%.4f")
    if st.button("Send fix"):
        _api("POST", f"/sessions/{st.session_state.session_id}/location", json={"latitude": lat, "longitude": lon})
    if st.button("Deny location"):
        _api(
            "POST",
            f"/sessions/{st.session_state.session_id}/location/failure",
            json={"reason": "denied", "message": "Location permission denied. Type your location instead."},
        )

location = _api("GET", f"/sessions/{st.session_state.session_id}/location")
st.text(location["location_text"])
st.text_input("Or type where you are", key="manual_location", placeholder="e.g. Rome, Italy")

# ── Intents ──────────────────────────────────────────────────────────────────

columns = st.columns(len(_INTENT_BUTTONS))
for column, (intent, label) in zip(columns, _INTENT_BUTTONS):
    if column.button(label, use_container_width=True):
        _send(intent)

question = st.text_input("Ask anything about this place")
if st.button("Ask") and question:
    _send("custom", prompt=question)

picture = st.camera_input("Take a photo")
if picture is not None and st.button("What is this?"):
    _send("photo", prompt=question or "What is this", photo=picture.getvalue())

# ── Answer ───────────────────────────────────────────────────────────────────

st.subheader("Answer")
st.markdown(st.session_state.get("output_text", "(My answers will appear here)"))

if show_debug and st.session_state.get("trace"):
    with st.expander("Pipeline trace", expanded=False):
        for event in st.session_state.trace:
            st.markdown(f"**{event['stage']}** ({event['status']}): {event['message']}")
            if event.get("details"):
                st.json(event["details"], expanded=False)
