"""
Text generation and transcription capabilities used by the AI endpoints.

Routes only depend on `generate(system, prompt, max_tokens) -> str`, which
raises `TextGenerationFailed`, and `transcribe(audio_url) -> (text, confidence)`,
so tests can inject fakes through `app.dependency_overrides`.
"""
from typing import Optional, Tuple

import structlog
from openai import OpenAI, OpenAIError

import config
from errors import ServerError

logger = structlog.get_logger()


class TextGenerationFailed(ServerError):
    default_message = "Text generation service unavailable"


MOCK_TRANSCRIPTION = (
    "I've been crafting pottery for over 15 years, learning the art from my grandmother "
    "who taught me the traditional techniques passed down through generations. Each piece "
    "I create tells a story of our heritage and the beauty of handmade craftsmanship."
)


class TextGenerator:
    """Chat-completion backed text generation."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or config.OPENAI_API_KEY
        self.model = model or config.OPENAI_MODEL
        self._client: Optional[OpenAI] = None

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def generate(self, system: str, prompt: str, max_tokens: int = 300) -> str:
        try:
            # Client construction itself raises when no API key is configured.
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            logger.error("text_generation_failed", model=self.model, error=str(e)[:200])
            raise TextGenerationFailed()
        return completion.choices[0].message.content or ""


class Transcriber:
    """Audio transcription. Returns a canned story until a speech-to-text backend is wired in."""

    def transcribe(self, audio_url: str) -> Tuple[str, float]:
        logger.info("transcription_requested", audio_url=audio_url)
        return MOCK_TRANSCRIPTION, 0.95


_generator: Optional[TextGenerator] = None


def get_text_generator() -> TextGenerator:
    global _generator
    if _generator is None:
        _generator = TextGenerator()
    return _generator


def get_transcriber() -> Transcriber:
    return Transcriber()
