from __future__ import annotations
import json
import logging
from typing import Any, Dict, Optional, Protocol

from openai import OpenAIError
from pydantic import ValidationError

from .config import SETTINGS
from .errors import InferenceFailure, OCRFailure
from .models import AnalysisResult, AssistantMode, MeterReading, Persona
from .oai import run_vision_json
from .prompts import METER_PROMPT, PERSONA_VOICES, SYSTEM_PROMPT

log = logging.getLogger(__name__)


class VisionCollaborator(Protocol):
    def analyze(
        self,
        image: bytes,
        mime: str,
        mode: AssistantMode,
        query: str,
        persona: Persona,
    ) -> AnalysisResult: ...

    def read_meter(self, image: bytes, mime: str) -> MeterReading: ...


def _strip_fences(text: str) -> str:
    inner = (text or "").strip()
    if inner.startswith("```"):
        inner = inner[3:].strip()
        if inner.lower().startswith("json"):
            inner = inner[4:].strip()
    if inner.endswith("```"):
        inner = inner[:-3].strip()
    return inner


def _load_object(text: str) -> Dict[str, Any]:
    payload = json.loads(_strip_fences(text))
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return payload


def parse_analysis(text: str) -> AnalysisResult:
    """Validate a model response into an AnalysisResult, or raise InferenceFailure.

    Never returns a partially filled result.
    """
    try:
        return AnalysisResult.model_validate(_load_object(text))
    except (ValueError, ValidationError) as e:
        # json.JSONDecodeError is a ValueError
        raise InferenceFailure(f"Topological inference failed: {e}") from e


def parse_meter_reading(text: str) -> MeterReading:
    try:
        return MeterReading.model_validate(_load_object(text))
    except (ValueError, ValidationError) as e:
        raise OCRFailure(f"meter reading unparseable: {e}") from e


def analysis_schema() -> str:
    return json.dumps(AnalysisResult.model_json_schema(by_alias=True), separators=(",", ":"))


def build_system_prompt(mode: AssistantMode, query: str, persona: Persona) -> str:
    return SYSTEM_PROMPT.format(
        persona_voice=PERSONA_VOICES.get(persona.value, PERSONA_VOICES[Persona.SENIOR_ENG.value]),
        mode=mode.value,
        query=(query or "").strip() or "none",
        schema=analysis_schema(),
    )


class OpenAIVision:
    """Vision collaborator backed by the OpenAI Responses API."""

    def __init__(self, analysis_model: Optional[str] = None, ocr_model: Optional[str] = None, detail: Optional[str] = None):
        self.analysis_model = analysis_model or SETTINGS.vision_model
        self.ocr_model = ocr_model or SETTINGS.ocr_model
        self.detail = detail or SETTINGS.image_detail

    def analyze(
        self,
        image: bytes,
        mime: str,
        mode: AssistantMode,
        query: str,
        persona: Persona,
    ) -> AnalysisResult:
        system_prompt = build_system_prompt(mode, query, persona)
        log.info("analysis request model=%s mode=%s persona=%s bytes=%d", self.analysis_model, mode.value, persona.value, len(image))
        try:
            text = run_vision_json(
                self.analysis_model,
                system_prompt,
                "Analyze this board and return the JSON object.",
                image,
                mime=mime,
                detail=self.detail,
            )
        except OpenAIError as e:
            raise InferenceFailure(f"Topological inference failed: {e}") from e
        result = parse_analysis(text)
        log.info(
            "analysis ok components=%d nets=%d steps=%d confidence=%.2f",
            len(result.components),
            len(result.nets),
            len(result.steps),
            result.board_pose.confidence,
        )
        return result

    def read_meter(self, image: bytes, mime: str) -> MeterReading:
        log.info("meter OCR request model=%s bytes=%d", self.ocr_model, len(image))
        try:
            text = run_vision_json(self.ocr_model, METER_PROMPT, "Return the JSON object.", image, mime=mime)
        except OpenAIError as e:
            raise OCRFailure(str(e)) from e
        return parse_meter_reading(text)
