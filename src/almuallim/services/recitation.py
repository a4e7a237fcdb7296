"""Tajweed feedback on a recorded recitation."""

import structlog
from openai import AsyncOpenAI

from almuallim.services.prompts import RECITATION_FALLBACK, RECITATION_PROMPT, SYSTEM_INSTRUCTION

logger = structlog.get_logger()


class RecitationAnalyzer:
    """Sends recorded audio to an audio-capable model for Tajweed feedback.

    Never raises: any failure yields ``RECITATION_FALLBACK``.

    Args:
        api_key: OpenAI API key; ``None`` disables analysis.
        model: Audio-input chat model.
    """

    def __init__(self, api_key: str | None, model: str = "gpt-4o-audio-preview"):
        self.client = AsyncOpenAI(api_key=api_key) if api_key else None
        self.model = model

    async def analyze(self, audio_b64: str, audio_format: str = "wav") -> str:
        """Return feedback text for a base64-encoded recording.

        Args:
            audio_b64: Base64-encoded audio payload.
            audio_format: Container format of the payload ("wav" or "mp3").
        """
        if not audio_b64:
            logger.warning("recitation_empty_audio")
            return RECITATION_FALLBACK
        if self.client is None:
            logger.warning("recitation_analyzer_unconfigured")
            return RECITATION_FALLBACK

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                modalities=["text"],
                messages=[
                    {"role": "system", "content": SYSTEM_INSTRUCTION},
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "input_audio",
                                "input_audio": {"data": audio_b64, "format": audio_format},
                            },
                            {"type": "text", "text": RECITATION_PROMPT},
                        ],
                    },
                ],
            )
            feedback = response.choices[0].message.content
            if not feedback:
                logger.warning("recitation_empty_reply", model=self.model)
                return RECITATION_FALLBACK
            logger.info("recitation_analyzed", audio_chars=len(audio_b64))
            return feedback

        except Exception:
            logger.exception("recitation_analysis_failed")
            return RECITATION_FALLBACK
