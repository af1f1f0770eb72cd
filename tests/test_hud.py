import datetime

from circuitsense import session as sm
from circuitsense.hud import audit_rows, expected_text, status_banner, step_header
from circuitsense.session import SessionState


def test_banner_and_header(analysis):
    idle = SessionState()
    assert status_banner(idle) == "SEEKING_QUAD..."
    assert step_header(idle) == ""

    state = sm.capture_succeeded(idle, analysis).state
    assert status_banner(state) == "TOPOLOGY_SYNC: OK"
    assert step_header(state) == "OP_SEQ 1/2"


def test_expected_text(analysis):
    assert expected_text(analysis.steps[0]) == "0-1 V"
    assert expected_text(analysis.steps[1]) == "10-20 mA"


def test_audit_rows(analysis):
    ts = 1_700_000_000_000
    state = sm.capture_succeeded(SessionState(), analysis).state
    state = sm.commit_reading(sm.reading_changed(state, "0.5").state, now=ts).state
    state = sm.commit_reading(sm.reading_changed(state, "25").state, now=ts + 1000).state

    rows = audit_rows(state)
    assert [r["title"] for r in rows] == ["Standby current", "Check VR1 output"]
    assert [r["status"] for r in rows] == ["FAIL", "PASS"]
    assert rows[0]["note"] == "Leakage through shorted C3"
    assert rows[1]["note"] == ""
    assert rows[1]["time"] == datetime.datetime.fromtimestamp(ts / 1000).strftime("%H:%M:%S")

    assert len(audit_rows(state, limit=1)) == 1

    # titles fall back to step ids once the analysis is gone
    cleared = sm.reset(state).state
    assert [r["title"] for r in audit_rows(cleared)] == ["s2", "s1"]
