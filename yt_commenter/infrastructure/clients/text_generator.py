# yt_commenter/infrastructure/clients/text_generator.py
"""
Reply Text Generator
OpenAI-compatible chat completions client that drafts comment replies.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from yt_commenter.app.config import AISettings, get_config
from yt_commenter.domain.models import GeneratedReply, ReplyPrompt, ReplyTone
from yt_commenter.services.exceptions import (
    ConfigurationError,
    DeadlineExceededError,
    GenerationFailedError,
)

logger = logging.getLogger(__name__)

BASE_INSTRUCTIONS = (
    "You are an assistant helping a YouTube content creator respond to comments "
    "on their videos. Your goal is to write thoughtful, authentic replies that "
    "engage with the commenter and foster a positive community. Keep replies "
    "concise, friendly, and conversational. Avoid generic responses."
)

TONE_INSTRUCTIONS = {
    ReplyTone.PROFESSIONAL.value: (
        "Maintain a professional and informative tone. Be helpful and "
        "knowledgeable while remaining approachable."
    ),
    ReplyTone.FRIENDLY.value: (
        "Be warm, casual, and conversational. Use a friendly tone as if chatting "
        "with someone you know well."
    ),
    ReplyTone.ENTHUSIASTIC.value: (
        "Be energetic and excited in your response. Show enthusiasm and "
        "appreciation for the commenter."
    ),
    ReplyTone.HELPFUL.value: (
        "Focus on being as helpful as possible. Provide useful information and "
        "address any questions thoroughly."
    ),
}

DEFAULT_TONE_INSTRUCTION = "Use a balanced, friendly tone that's authentic and engaging."


def build_system_message(tone: Optional[str]) -> str:
    """
    System prompt for a tone

    Preset tones map to fixed guidance; any other non-empty text is passed
    through as a custom tone description.
    """
    key = (tone or "").strip()
    instruction = TONE_INSTRUCTIONS.get(key.lower())
    if instruction is None:
        instruction = f"Write in this tone: {key}." if key else DEFAULT_TONE_INSTRUCTION
    return f"{BASE_INSTRUCTIONS}\n\n{instruction}"


def build_user_message(prompt: ReplyPrompt) -> str:
    if prompt.video_title:
        lines = [
            "Please write a reply to the following comment on my YouTube video "
            f'titled "{prompt.video_title}":',
            "",
        ]
    else:
        lines = ["Please write a reply to the following comment on my YouTube video:", ""]

    lines += [f'Comment from {prompt.comment_author}: "{prompt.comment_text}"', ""]

    if prompt.reply_history:
        lines.append("Previous replies in this thread:")
        lines += [f"- {entry}" for entry in prompt.reply_history]
        lines.append("")

    if prompt.additional_instructions:
        lines += [f"Additional instructions: {prompt.additional_instructions}", ""]

    lines.append(
        "Write only the reply text without any additional formatting or explanation."
    )
    return "\n".join(lines)


class OpenAIReplyGenerator:
    """Drafts replies through an OpenAI-compatible /chat/completions endpoint"""

    def __init__(
        self,
        settings: Optional[AISettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_config().ai
        self.base_url = self.settings.base_url.rstrip("/")
        self.client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.settings.timeout_seconds)
        )

    async def close(self) -> None:
        await self.client.aclose()

    def build_payload(self, prompt: ReplyPrompt) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = [
            {"role": "system", "content": build_system_message(prompt.tone)},
            {"role": "user", "content": build_user_message(prompt)},
        ]
        return {
            "model": prompt.model or self.settings.model,
            "messages": messages,
            "temperature": self.settings.temperature,
            "max_tokens": self.settings.max_tokens,
        }

    async def generate(self, prompt: ReplyPrompt) -> GeneratedReply:
        """
        Draft one reply

        Raises:
            GenerationFailedError: Upstream error or empty completion
            DeadlineExceededError: Request timed out
        """
        if not self.settings.api_key:
            raise ConfigurationError("AI_API_KEY is not configured")

        try:
            response = await self.client.post(
                f"{self.base_url}/chat/completions",
                json=self.build_payload(prompt),
                headers={"Authorization": f"Bearer {self.settings.api_key}"},
            )
        except httpx.TimeoutException as e:
            logger.warning("⚠️ Reply generation timed out")
            raise DeadlineExceededError("Reply generation timed out") from e
        except httpx.RequestError as e:
            logger.error(f"❌ Network error calling generator: {type(e).__name__}")
            raise GenerationFailedError(f"Network error calling generator: {e}") from e

        if not response.is_success:
            logger.error(f"❌ Generator returned HTTP {response.status_code}")
            raise GenerationFailedError(
                f"Generator returned HTTP {response.status_code}",
                details={"upstream_status": response.status_code},
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise GenerationFailedError("Malformed generator response") from e

        reply_text = (content or "").strip()
        if not reply_text:
            raise GenerationFailedError("Generator returned an empty reply")

        model = data.get("model") or prompt.model or self.settings.model
        logger.info(f"🤖 Reply drafted with {model}")
        return GeneratedReply(
            reply_text=reply_text,
            model=model,
            usage=data.get("usage") or {},
        )
