from __future__ import annotations
import hashlib
import logging
import streamlit as st

import sys
from pathlib import Path

# Ensure project root is on sys.path so `import circuitsense` works regardless of how Streamlit is launched.
_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

def _rerun():
    """Streamlit rerun compatibility across versions."""
    try:
        st.rerun()
    except AttributeError:
        st.experimental_rerun()


from circuitsense.config import SETTINGS
from circuitsense.controller import FrameGate, Workbench
from circuitsense.hud import audit_rows, expected_text, status_banner, step_header
from circuitsense.inference import OpenAIVision
from circuitsense.logging_config import configure_logging
from circuitsense.models import AssistantMode, NetCategory, Persona
from circuitsense.narration import OpenAISpeechNarrator
from circuitsense.overlay import scene_to_svg
from circuitsense.session import LogStatus

configure_logging()
log = logging.getLogger("circuitsense.app")

st.set_page_config(page_title="CircuitSense", layout="wide")

_MODE_ICONS = {
    AssistantMode.INSPECTION: "🔍",
    AssistantMode.MEASUREMENT: "📏",
    AssistantMode.REPAIR: "🛠️",
    AssistantMode.VALIDATION: "✅",
    AssistantMode.TUTORIAL: "💡",
    AssistantMode.THERMAL: "🔥",
}
_PERSONA_ICONS = {
    Persona.SENIOR_ENG: "👨‍🔬",
    Persona.HARDWARE_HACKER: "🧑‍💻",
    Persona.PROFESSOR: "🎓",
    Persona.SOVIET_TECH: "🛠️",
}


def _workbench() -> Workbench:
    if "workbench" not in st.session_state:
        st.session_state["workbench"] = Workbench(OpenAIVision(), narrator=OpenAISpeechNarrator())
        st.session_state["frame"] = None
        st.session_state["frame_mime"] = "image/jpeg"
        st.session_state["frame_gate"] = FrameGate()
        st.session_state["last_submitted"] = None
    return st.session_state["workbench"]


def _submit(data: bytes, mime: str) -> None:
    st.session_state["last_submitted"] = (data, mime)
    routed_to_ocr = wb.state.awaiting_ocr
    with st.spinner("Reading meter..." if routed_to_ocr else "Analyzing board topology..."):
        accepted = wb.capture(data, mime=mime)
    if accepted and not routed_to_ocr and wb.state.error is None:
        st.session_state["frame"] = data
        st.session_state["frame_mime"] = mime


wb = _workbench()

st.title("⚡ CircuitSense: Tactical AI Workbench")

# ---- control surface ----
with st.sidebar:
    st.header("CircuitSense")
    st.caption(f"Vision model: {SETTINGS.vision_model} | OCR model: {SETTINGS.ocr_model}")

    voice = st.toggle("Voice narration", value=wb.state.voice_enabled)
    if voice != wb.state.voice_enabled:
        wb.toggle_voice(voice)

    personas = list(Persona)
    persona = st.radio(
        "Active expert persona",
        personas,
        index=personas.index(wb.state.persona),
        format_func=lambda p: f"{_PERSONA_ICONS[p]} {p.label}",
    )
    if persona != wb.state.persona:
        wb.select_persona(persona)

    modes = list(AssistantMode)
    mode = st.radio(
        "Mode",
        modes,
        index=modes.index(wb.state.mode),
        format_func=lambda m: f"{_MODE_ICONS[m]} {m.value}",
        horizontal=True,
    )
    if mode != wb.state.mode:
        wb.select_mode(mode)

    query = st.text_area(
        "Contextual query",
        value=wb.state.query,
        placeholder="e.g. 'Short detected', 'I2C debugging'",
    )
    if query != wb.state.query:
        wb.set_query(query)

    filters = [None] + list(NetCategory)
    net_filter = st.selectbox(
        "Highlight nets",
        filters,
        index=filters.index(wb.state.active_net_filter),
        format_func=lambda c: "(none)" if c is None else c.value,
    )
    if net_filter != wb.state.active_net_filter:
        wb.set_net_filter(net_filter)

    st.divider()
    if st.button("Reset analysis", disabled=not wb.state.is_board_locked):
        wb.reset()
        st.session_state["frame"] = None
        _rerun()

# ---- capture ----
main_col, hud_col = st.columns([3, 2])

with main_col:
    st.markdown(f"**{status_banner(wb.state)}** · Role: `{wb.state.persona.value}`")
    if wb.state.result is not None:
        st.caption(
            f"Complexity: {wb.state.result.estimated_complexity.value} · "
            f"Pose confidence: {wb.state.result.board_pose.confidence:.2f}"
        )
    if wb.state.awaiting_ocr:
        st.info("Next capture reads the multimeter display instead of re-analyzing the board.")

    shot = st.camera_input("Capture frame", disabled=wb.state.busy)
    upload = st.file_uploader("…or upload a photo", type=["jpg", "jpeg", "png", "webp"])
    gate: FrameGate = st.session_state["frame_gate"]
    # each widget submits only when its own photo changes
    for widget, source in (("camera", shot), ("upload", upload)):
        data = source.getvalue() if source is not None else None
        if gate.fresh(widget, data):
            _submit(data, source.type or "image/jpeg")
            _rerun()

    last = st.session_state.get("last_submitted")
    if last is not None and not wb.state.busy and (wb.state.error or wb.state.result is None):
        if st.button("Resubmit last photo"):
            _submit(*last)
            _rerun()

    if wb.state.error:
        st.error(wb.state.error)

    scene = wb.scene()
    if scene or st.session_state.get("frame") is not None:
        svg = scene_to_svg(
            scene,
            background=st.session_state.get("frame"),
            background_mime=st.session_state.get("frame_mime", "image/jpeg"),
        )
        st.markdown(f'<div style="width:100%">{svg}</div>', unsafe_allow_html=True)

    narrator = wb.narrator
    if isinstance(narrator, OpenAISpeechNarrator):
        clip = narrator.take()
        if clip:
            st.audio(clip, format="audio/mpeg", autoplay=True)

# ---- HUD ----
with hud_col:
    result = wb.state.result
    if result is None:
        st.subheader("🤖 Engine idle")
        st.caption("Capture a frame of the board to start.")
    else:
        st.subheader("Topology stages")
        stages = result.sorted_stages()
        if stages:
            cols = st.columns(min(len(stages), 4))
            for i, stage in enumerate(stages):
                with cols[i % len(cols)]:
                    st.markdown(f"**Stage {stage.order:g}**  \n{stage.name}")
        st.write(result.general_recommendation)
        if result.safety_notes:
            with st.expander("Safety notes", expanded=False):
                for note in result.safety_notes:
                    st.write(f"- {note}")

        if wb.state.mode == AssistantMode.TUTORIAL:
            st.subheader("💡 Causal knowledge base")
            for c in result.components[:3]:
                st.markdown(f"**{c.name}**  \n_\"{c.causal_role}\"_")

        if wb.state.mode == AssistantMode.THERMAL and result.heuristics:
            st.subheader("Heuristics")
            for h in result.heuristics:
                st.write(f"- {h.context}: {h.inference} ({h.probability:.0%})")

        step = wb.state.current_step
        if step is not None and wb.state.mode == AssistantMode.MEASUREMENT:
            st.subheader(step.title)
            st.caption(step_header(wb.state))
            st.write(f"_\"{step.description}\"_")
            if step.reasoning:
                st.caption(step.reasoning)
            st.metric("Expect", expected_text(step))
            # Keyed on state so the box picks up auto-advance clears and OCR values.
            input_key = f"reading_{wb.state.step_index}_{len(wb.state.history)}_{hashlib.md5(wb.state.reading.encode()).hexdigest()[:8]}"
            with st.form("reading_form", clear_on_submit=False):
                typed = st.text_input("Detect", value=wb.state.reading, placeholder="0.00", key=input_key)
                committed = st.form_submit_button("Commit (Enter)")
            if committed:
                wb.enter_reading(typed)
                wb.commit_reading()
                _rerun()
            meter = st.toggle("📷 Read meter via photo", value=wb.state.awaiting_ocr)
            if meter != wb.state.awaiting_ocr:
                wb.request_meter_capture(meter)
                _rerun()

    st.subheader("Audit trail")
    rows = audit_rows(wb.state, limit=5)
    if not rows:
        st.caption("No readings yet.")
    for row in rows:
        icon = "🟢" if row["status"] == LogStatus.PASS.value else "🔴"
        st.markdown(f"{icon} **{row['title']}** · {row['status']}  \n`{row['time']}` · {row['value']}")
        if row["note"]:
            st.caption(row["note"])
