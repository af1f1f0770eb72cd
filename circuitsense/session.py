"""Guided-measurement session state and its transitions.

A :class:`SessionState` is an immutable snapshot. Every operator or
collaborator event is a plain function taking the current snapshot and
returning an :class:`Outcome`: the next snapshot plus, optionally, a short
text to narrate. Nothing here talks to the network or the speaker; the
controller decides whether narration is actually dispatched.

Phases (derived, never stored)::

    Idle        no analysis, nothing in flight
    Capturing   an analysis or meter-OCR request is in flight
    StepActive  analysis present and a probing step is current
    Reviewing   analysis present without probing steps

The audit log (``history``) is newest-first and only ever grows. Neither a
new analysis nor an explicit reset clears it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from .models import AnalysisResult, AssistantMode, MeterReading, NetCategory, Persona, ProbingStep
from .readings import normalize_meter_value, parse_reading

PASS_NARRATION = "Reading valid. Proceeding to next step."


class Phase(str, Enum):
    IDLE = "Idle"
    REVIEWING = "Reviewing"
    CAPTURING = "Capturing"
    STEP_ACTIVE = "StepActive"


class LogStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"


@dataclass(frozen=True)
class DiagnosticLogEntry:
    timestamp: int
    step_id: str
    value: str
    status: LogStatus
    note: Optional[str] = None


@dataclass(frozen=True)
class SessionState:
    result: Optional[AnalysisResult] = None
    error: Optional[str] = None
    busy: bool = False
    step_index: int = 0
    reading: str = ""
    history: Tuple[DiagnosticLogEntry, ...] = field(default_factory=tuple)
    awaiting_ocr: bool = False
    mode: AssistantMode = AssistantMode.INSPECTION
    persona: Persona = Persona.SENIOR_ENG
    query: str = ""
    voice_enabled: bool = False
    active_net_filter: Optional[NetCategory] = None

    @property
    def steps(self) -> Tuple[ProbingStep, ...]:
        if self.result is None:
            return ()
        return tuple(self.result.steps)

    @property
    def current_step(self) -> Optional[ProbingStep]:
        steps = self.steps
        if 0 <= self.step_index < len(steps):
            return steps[self.step_index]
        return None

    @property
    def is_last_step(self) -> bool:
        return bool(self.steps) and self.step_index >= len(self.steps) - 1

    @property
    def is_board_locked(self) -> bool:
        return self.result is not None

    @property
    def phase(self) -> Phase:
        if self.busy:
            return Phase.CAPTURING
        if self.result is None:
            return Phase.IDLE
        if self.current_step is not None:
            return Phase.STEP_ACTIVE
        return Phase.REVIEWING


class Outcome(NamedTuple):
    state: SessionState
    narration: Optional[str] = None
    accepted: bool = True


def _now_ms() -> int:
    return int(time.time() * 1000)


# ---- capture / collaborator events ----

def capture_started(state: SessionState) -> Outcome:
    """Mark a collaborator request as in flight; rejected while one already is."""
    if state.busy:
        return Outcome(state, accepted=False)
    return Outcome(replace(state, busy=True, error=None))


def capture_succeeded(state: SessionState, result: AnalysisResult) -> Outcome:
    nxt = replace(
        state,
        result=result,
        busy=False,
        error=None,
        step_index=0,
        reading="",
    )
    return Outcome(nxt, narration=result.general_recommendation or None)


def capture_failed(state: SessionState, message: str) -> Outcome:
    return Outcome(replace(state, busy=False, error=message))


def ocr_requested(state: SessionState, enabled: bool = True) -> Outcome:
    return Outcome(replace(state, awaiting_ocr=enabled))


def ocr_succeeded(state: SessionState, meter: MeterReading) -> Outcome:
    step = state.current_step
    value = meter.value
    if step is not None:
        value = normalize_meter_value(meter.value, meter.unit, step.expected_range.unit)
    nxt = replace(state, reading=value, awaiting_ocr=False, busy=False, error=None)
    spoken = f"Value detected: {meter.value} {meter.unit}".strip()
    return Outcome(nxt, narration=spoken)


def ocr_failed(state: SessionState, message: str) -> Outcome:
    return Outcome(replace(state, busy=False, error=f"OCR failure: {message}"))


# ---- operator events ----

def reading_changed(state: SessionState, text: str) -> Outcome:
    return Outcome(replace(state, reading=text))


def _logged_value(reading: str, unit: str) -> str:
    text = reading.strip()
    if not unit or text.lower().endswith(unit.strip().lower()):
        return text
    return f"{text} {unit}"


def commit_reading(state: SessionState, now: Optional[int] = None) -> Outcome:
    """Check the pending reading against the current step's expected range.

    PASS prepends an entry and auto-advances (except on the last step).
    FAIL prepends an entry carrying the fault theory and keeps both the step
    and the reading so the operator can re-measure. A missing step, a
    reading without a leading number, or a capture still in flight changes
    nothing.
    """
    if state.busy:
        return Outcome(state, accepted=False)
    step = state.current_step
    if step is None or not state.reading.strip():
        return Outcome(state, accepted=False)
    actual = parse_reading(state.reading)
    if actual is None:
        return Outcome(state, accepted=False)

    rng = step.expected_range
    passed = rng.contains(actual)
    entry = DiagnosticLogEntry(
        timestamp=_now_ms() if now is None else now,
        step_id=step.id,
        value=_logged_value(state.reading, rng.unit),
        status=LogStatus.PASS if passed else LogStatus.FAIL,
        note=None if passed else step.fault_theory,
    )
    history = (entry,) + state.history

    if not passed:
        return Outcome(
            replace(state, history=history),
            narration=f"Fault detected. Theory: {step.fault_theory}",
        )

    if state.is_last_step:
        return Outcome(replace(state, history=history), narration=PASS_NARRATION)
    return Outcome(
        replace(state, history=history, step_index=state.step_index + 1, reading=""),
        narration=PASS_NARRATION,
    )


def mode_changed(state: SessionState, mode: AssistantMode) -> Outcome:
    return Outcome(replace(state, mode=mode))


def persona_changed(state: SessionState, persona: Persona) -> Outcome:
    return Outcome(replace(state, persona=persona))


def query_changed(state: SessionState, query: str) -> Outcome:
    return Outcome(replace(state, query=query))


def voice_toggled(state: SessionState, enabled: Optional[bool] = None) -> Outcome:
    value = (not state.voice_enabled) if enabled is None else enabled
    return Outcome(replace(state, voice_enabled=value))


def net_filter_changed(state: SessionState, category: Optional[NetCategory]) -> Outcome:
    return Outcome(replace(state, active_net_filter=category))


def reset(state: SessionState) -> Outcome:
    """Drop the analysis; keep the audit log and the operator's selections."""
    return Outcome(
        replace(
            state,
            result=None,
            error=None,
            step_index=0,
            reading="",
            awaiting_ocr=False,
        )
    )
