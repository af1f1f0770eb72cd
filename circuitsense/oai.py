from __future__ import annotations
import base64
from typing import List, Dict, Any, Optional
from openai import OpenAI
from .config import SETTINGS

_client: Optional[OpenAI] = None

def client() -> OpenAI:
    global _client
    if _client is None:
        _client = OpenAI(api_key=SETTINGS.require_api_key())
    return _client

def image_to_data_url(image_bytes: bytes, mime: str) -> str:
    b64 = base64.b64encode(image_bytes).decode("ascii")
    return f"data:{mime};base64,{b64}"

def run_vision_json(model: str, system_prompt: str, user_text: str, image_bytes: bytes, mime: str = "image/jpeg", detail: str | None = None) -> str:
    """One image + instructions in, raw JSON text out."""
    image_item: Dict[str, Any] = {"type": "input_image", "image_url": image_to_data_url(image_bytes, mime)}
    if detail:
        image_item["detail"] = detail
    content: List[Dict[str, Any]] = [image_item, {"type": "input_text", "text": user_text}]

    resp = client().responses.create(
        model=model,
        input=[
            {"role": "system", "content": [{"type": "input_text", "text": system_prompt}]},
            {"role": "user", "content": content},
        ],
        text={"format": {"type": "json_object"}},
    )
    return resp.output_text

def synthesize_speech(text: str) -> bytes:
    resp = client().audio.speech.create(
        model=SETTINGS.tts_model,
        voice=SETTINGS.tts_voice,
        input=text,
        response_format="mp3",
    )
    return resp.content
