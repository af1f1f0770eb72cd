from __future__ import annotations
import logging
from typing import List, Optional, Protocol

from openai import OpenAIError

from .oai import synthesize_speech

log = logging.getLogger(__name__)


class Narrator(Protocol):
    def say(self, text: str) -> None: ...


class RecordingNarrator:
    """Keeps what would have been spoken. Silent default and test double."""

    def __init__(self) -> None:
        self.spoken: List[str] = []

    def say(self, text: str) -> None:
        self.spoken.append(text)

    @property
    def latest(self) -> Optional[str]:
        return self.spoken[-1] if self.spoken else None


class OpenAISpeechNarrator:
    """Text-to-speech through OpenAI; only the newest clip is kept.

    A new utterance replaces whatever was pending, so the UI only ever plays
    the most recent message.
    """

    def __init__(self) -> None:
        self.text: Optional[str] = None
        self.audio: Optional[bytes] = None

    def say(self, text: str) -> None:
        self.text = text
        self.audio = None
        try:
            self.audio = synthesize_speech(text)
        except (OpenAIError, RuntimeError) as e:
            # narration is best-effort; the HUD still shows the text.
            # RuntimeError covers a missing OPENAI_API_KEY.
            log.warning("speech synthesis failed: %s", e)

    def take(self) -> Optional[bytes]:
        """Hand the pending clip to the player exactly once."""
        audio, self.audio = self.audio, None
        return audio
