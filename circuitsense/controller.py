"""Workbench controller: routes operator events through the session transitions.

The controller is the only place that holds a mutable reference to the
current :class:`SessionState`; every change goes through one of the pure
transition functions in :mod:`circuitsense.session`. It also owns the two
side channels: the vision collaborator (analysis / meter OCR) and narration.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Dict, Optional

from . import session as sm
from .errors import CircuitSenseError
from .inference import VisionCollaborator
from .models import AssistantMode, NetCategory, Persona
from .narration import Narrator, RecordingNarrator
from .overlay import Scene, render_scene
from .session import Outcome, SessionState

log = logging.getLogger(__name__)


class Workbench:
    def __init__(
        self,
        vision: VisionCollaborator,
        narrator: Optional[Narrator] = None,
        state: Optional[SessionState] = None,
    ):
        self.vision = vision
        self.narrator: Narrator = narrator if narrator is not None else RecordingNarrator()
        self.state = state if state is not None else SessionState()

    def _apply(self, outcome: Outcome) -> bool:
        self.state = outcome.state
        if outcome.narration and self.state.voice_enabled:
            self.narrator.say(outcome.narration)
        return outcome.accepted

    # ---- selections ----

    def select_mode(self, mode: AssistantMode) -> None:
        self._apply(sm.mode_changed(self.state, mode))

    def select_persona(self, persona: Persona) -> None:
        self._apply(sm.persona_changed(self.state, persona))

    def set_query(self, query: str) -> None:
        self._apply(sm.query_changed(self.state, query))

    def toggle_voice(self, enabled: Optional[bool] = None) -> None:
        self._apply(sm.voice_toggled(self.state, enabled))

    def set_net_filter(self, category: Optional[NetCategory]) -> None:
        self._apply(sm.net_filter_changed(self.state, category))

    def request_meter_capture(self, enabled: bool = True) -> None:
        self._apply(sm.ocr_requested(self.state, enabled))

    def enter_reading(self, text: str) -> None:
        self._apply(sm.reading_changed(self.state, text))

    # ---- capture ----

    def capture(self, image: bytes, mime: str = "image/jpeg") -> bool:
        """Send a still to the collaborator. Returns False if one is already in flight."""
        if not self._apply(sm.capture_started(self.state)):
            log.info("capture rejected: request already in flight")
            return False
        if self.state.awaiting_ocr:
            self._read_meter(image, mime)
        else:
            self._analyze(image, mime)
        return True

    def _analyze(self, image: bytes, mime: str) -> None:
        st = self.state
        try:
            result = self.vision.analyze(image, mime, st.mode, st.query, st.persona)
        except CircuitSenseError as e:
            log.warning("analysis failed: %s", e)
            self._apply(sm.capture_failed(self.state, str(e)))
            return
        except Exception as e:
            self._apply(sm.capture_failed(self.state, f"Topological inference failed: {e}"))
            raise
        self._apply(sm.capture_succeeded(self.state, result))

    def _read_meter(self, image: bytes, mime: str) -> None:
        try:
            meter = self.vision.read_meter(image, mime)
        except CircuitSenseError as e:
            log.warning("meter OCR failed: %s", e)
            self._apply(sm.ocr_failed(self.state, str(e)))
            return
        except Exception as e:
            self._apply(sm.ocr_failed(self.state, str(e)))
            raise
        log.info("meter OCR value=%r unit=%r", meter.value, meter.unit)
        self._apply(sm.ocr_succeeded(self.state, meter))

    # ---- measurement ----

    def commit_reading(self) -> bool:
        accepted = self._apply(sm.commit_reading(self.state))
        if accepted:
            entry = self.state.history[0]
            log.info("reading committed step=%s value=%s status=%s", entry.step_id, entry.value, entry.status.value)
        else:
            log.debug("commit ignored: busy, no current step, or reading %r is not a number", self.state.reading)
        return accepted

    def reset(self) -> None:
        self._apply(sm.reset(self.state))

    def scene(self) -> Scene:
        st = self.state
        return render_scene(st.result, st.mode, st.step_index, st.active_net_filter)


class FrameGate:
    """Remembers the last photo seen on each input widget.

    Streamlit hands back the same photo on every rerun. A widget only yields a
    new capture when its own value changes, so clearing one widget never
    resubmits whatever another widget still holds.
    """

    def __init__(self) -> None:
        self._seen: Dict[str, Optional[str]] = {}

    def fresh(self, widget: str, data: Optional[bytes]) -> bool:
        digest = hashlib.sha256(data).hexdigest() if data is not None else None
        previous = self._seen.get(widget)
        self._seen[widget] = digest
        return digest is not None and digest != previous
