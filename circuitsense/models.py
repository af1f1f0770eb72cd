"""Pydantic models for the board analysis returned by the vision model.

Wire names are camelCase (``topLeft``, ``thermalSignature``...), Python
attributes are snake_case. Every model is frozen: an analysis is produced
once per capture and only ever replaced, never edited.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ── enumerations ─────────────────────────────────────────────────────
class AssistantMode(str, Enum):
    INSPECTION = "INSPECTION"
    MEASUREMENT = "MEASUREMENT"
    REPAIR = "REPAIR"
    VALIDATION = "VALIDATION"
    TUTORIAL = "TUTORIAL"
    THERMAL = "THERMAL"


class Persona(str, Enum):
    SENIOR_ENG = "SENIOR_ENG"
    HARDWARE_HACKER = "HARDWARE_HACKER"
    PROFESSOR = "PROFESSOR"
    SOVIET_TECH = "SOVIET_TECH"

    @property
    def label(self) -> str:
        return PERSONA_LABELS[self]


PERSONA_LABELS: Dict[Persona, str] = {
    Persona.SENIOR_ENG: "Senior Engineer",
    Persona.HARDWARE_HACKER: "Hacker/Maker",
    Persona.PROFESSOR: "Professor",
    Persona.SOVIET_TECH: "Old School Tech",
}


class NetCategory(str, Enum):
    GND = "GND"
    VCC = "VCC"
    V3V3 = "3V3"
    V5 = "5V"
    SIGNAL = "SIGNAL"
    BUS = "BUS"
    PROTECTION = "PROTECTION"


class ThermalLevel(str, Enum):
    COOL = "COOL"
    NOMINAL = "NOMINAL"
    WARM = "WARM"
    HOT = "HOT"
    CRITICAL = "CRITICAL"


class ComponentType(str, Enum):
    IC = "ic"
    RESISTOR = "resistor"
    CAPACITOR = "capacitor"
    DIODE = "diode"
    TRANSISTOR = "transistor"
    CONNECTOR = "connector"
    OTHER = "other"


class ComponentStatus(str, Enum):
    OK = "ok"
    FAULTY = "faulty"
    SUSPICIOUS = "suspicious"
    UNKNOWN = "unknown"


class Complexity(str, Enum):
    EASY = "easy"
    MODERATE = "moderate"
    ADVANCED = "advanced"


def _lower(v):
    return v.strip().lower() if isinstance(v, str) else v


def _upper(v):
    return v.strip().upper() if isinstance(v, str) else v


# ── geometry ─────────────────────────────────────────────────────────
class Point(_Model):
    """A 2D point; board-surface (0-1000) or screen pixels depending on use."""

    x: float
    y: float


class Corners(_Model):
    top_left: Point
    top_right: Point
    bottom_right: Point
    bottom_left: Point

    def as_tuple(self) -> Tuple[Point, Point, Point, Point]:
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)


class BoardPose(_Model):
    """Detected quadrilateral footprint of the board in screen space."""

    corners: Corners
    confidence: float = Field(ge=0.0, le=1.0)

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v):
        if isinstance(v, (int, float)):
            return min(1.0, max(0.0, float(v)))
        return v


# ── board content ────────────────────────────────────────────────────
class Component(_Model):
    id: str
    type: ComponentType
    name: str
    category: str = ""
    xmin: float
    ymin: float
    xmax: float
    ymax: float
    status: ComponentStatus
    causal_role: str
    thermal_signature: ThermalLevel
    failure_analysis: Optional[str] = None
    nets: List[str] = Field(default_factory=list)

    @field_validator("type", "status", mode="before")
    @classmethod
    def _lower_enums(cls, v):
        return _lower(v)

    @field_validator("thermal_signature", mode="before")
    @classmethod
    def _upper_thermal(cls, v):
        return _upper(v)

    @property
    def centroid(self) -> Point:
        return Point(x=(self.xmin + self.xmax) / 2, y=(self.ymin + self.ymax) / 2)

    @property
    def is_suspect(self) -> bool:
        return self.status in (ComponentStatus.FAULTY, ComponentStatus.SUSPICIOUS)


class Net(_Model):
    id: str
    label: str
    category: NetCategory
    points: List[Point] = Field(default_factory=list)

    @field_validator("category", mode="before")
    @classmethod
    def _upper_category(cls, v):
        return _upper(v)


class LogicStage(_Model):
    name: str
    description: str = ""
    order: float
    components: List[str] = Field(default_factory=list)


class ExpectedRange(_Model):
    min: float
    max: float
    unit: str = ""

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


class ProbingStep(_Model):
    id: str
    title: str
    description: str = ""
    red_probe: Point
    black_probe: Point
    expected_range: ExpectedRange
    reasoning: str = ""
    fault_theory: str = ""


class Heuristic(_Model):
    context: str = ""
    inference: str = ""
    probability: float = 0.0


class AnalysisResult(_Model):
    """Aggregate root of one board interpretation."""

    board_pose: BoardPose
    components: List[Component]
    nets: List[Net]
    steps: List[ProbingStep]
    heuristics: List[Heuristic]
    logic_flow: List[LogicStage]
    safety_notes: List[str]
    general_recommendation: str
    estimated_complexity: Complexity

    @field_validator("estimated_complexity", mode="before")
    @classmethod
    def _lower_complexity(cls, v):
        return _lower(v)

    def component(self, component_id: str) -> Optional[Component]:
        for c in self.components:
            if c.id == component_id:
                return c
        return None

    def step(self, step_id: str) -> Optional[ProbingStep]:
        for s in self.steps:
            if s.id == step_id:
                return s
        return None

    def sorted_stages(self) -> List[LogicStage]:
        # sorted() is stable, so duplicate orders keep producer order
        return sorted(self.logic_flow, key=lambda s: s.order)


class MeterReading(_Model):
    value: str
    unit: str = ""

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, v):
        if isinstance(v, (int, float)):
            return str(v)
        return v
