"""Chat-style AI tutor for Arabic grammar and Tajweed questions."""

import structlog
from openai import AsyncOpenAI

from almuallim.services.prompts import SYSTEM_INSTRUCTION, TUTOR_FALLBACK

logger = structlog.get_logger()


class AITutor:
    """Answers learner questions through the OpenAI chat API.

    Never raises: any failure yields ``TUTOR_FALLBACK``.

    Args:
        api_key: OpenAI API key; ``None`` disables the tutor.
        model: Chat model used for answers.
        temperature: Sampling temperature.
    """

    def __init__(self, api_key: str | None, model: str = "gpt-4o-mini", temperature: float = 0.7):
        self.client = AsyncOpenAI(api_key=api_key) if api_key else None
        self.model = model
        self.temperature = temperature

    async def ask(self, prompt: str) -> str:
        """Send one question and return the tutor's reply text."""
        if self.client is None:
            logger.warning("ai_tutor_unconfigured")
            return TUTOR_FALLBACK

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_INSTRUCTION},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
            )
            reply = response.choices[0].message.content
            if not reply:
                logger.warning("ai_tutor_empty_reply", model=self.model)
                return TUTOR_FALLBACK
            logger.info("ai_tutor_replied", prompt_chars=len(prompt), reply_chars=len(reply))
            return reply

        except Exception:
            logger.exception("ai_tutor_failed")
            return TUTOR_FALLBACK
