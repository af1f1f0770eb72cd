from __future__ import annotations
import datetime
from typing import Any, Dict, List, Optional

from .models import ProbingStep
from .readings import format_number
from .session import SessionState


def status_banner(state: SessionState) -> str:
    return "TOPOLOGY_SYNC: OK" if state.is_board_locked else "SEEKING_QUAD..."


def step_header(state: SessionState) -> str:
    if state.current_step is None:
        return ""
    return f"OP_SEQ {state.step_index + 1}/{len(state.steps)}"


def expected_text(step: ProbingStep) -> str:
    rng = step.expected_range
    return f"{format_number(rng.min)}-{format_number(rng.max)} {rng.unit}".strip()


def _local_time(timestamp_ms: int) -> str:
    return datetime.datetime.fromtimestamp(timestamp_ms / 1000).strftime("%H:%M:%S")


def audit_rows(state: SessionState, limit: Optional[int] = 5) -> List[Dict[str, Any]]:
    """Newest-first log rows for display.

    Titles resolve against the analysis that is active now; entries logged
    against an earlier analysis fall back to their step id.
    """
    entries = state.history if limit is None else state.history[:limit]
    rows = []
    for e in entries:
        step = state.result.step(e.step_id) if state.result is not None else None
        rows.append(
            {
                "title": step.title if step is not None else e.step_id,
                "time": _local_time(e.timestamp),
                "value": e.value,
                "status": e.status.value,
                "note": e.note or "",
            }
        )
    return rows
