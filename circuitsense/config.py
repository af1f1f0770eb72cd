from __future__ import annotations
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

def _get(name: str, default: str | None = None) -> str:
    v = os.getenv(name, default)
    if v is None or v.strip() == "":
        raise RuntimeError(f"Missing required environment variable: {name}")
    return v

@dataclass(frozen=True)
class Settings:
    vision_model: str = os.getenv("VISION_MODEL", "gpt-4o")
    ocr_model: str = os.getenv("OCR_MODEL", "gpt-4o-mini")
    tts_model: str = os.getenv("TTS_MODEL", "gpt-4o-mini-tts")
    tts_voice: str = os.getenv("TTS_VOICE", "onyx")
    image_detail: str = os.getenv("IMAGE_DETAIL", "high")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")

    def require_api_key(self) -> str:
        return self.openai_api_key or _get("OPENAI_API_KEY")

SETTINGS = Settings()
