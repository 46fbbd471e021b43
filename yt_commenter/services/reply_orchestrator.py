"""
Reply Orchestrator
Drafts replies with the text generator and posts confirmed replies.

Posting is at-most-once: the platform call is issued exactly once and the
store is only touched after the platform accepted the reply.
"""

import asyncio
import dataclasses
import logging
from typing import Optional

from yt_commenter.domain.interfaces import PlatformClient, TextGenerator
from yt_commenter.domain.models import (
    AuthContext,
    Comment,
    GeneratedReply,
    InteractionRecord,
    InteractionType,
    Reply,
    ReplyPrompt,
    UserPreferences,
)
from yt_commenter.services.comment_store import CommentStore
from yt_commenter.services.exceptions import (
    GenerationFailedError,
    ReplyPostedStoreFailureError,
    ResourceNotFoundError,
    ServiceError,
    ValidationError,
)
from yt_commenter.services.user_service import UserService

logger = logging.getLogger(__name__)

DEFAULT_GENERATION_TIMEOUT = 30.0


class ReplyOrchestrator:
    """Generate and post replies to stored comments"""

    def __init__(
        self,
        platform: PlatformClient,
        generator: TextGenerator,
        store: CommentStore,
        generation_timeout: float = DEFAULT_GENERATION_TIMEOUT,
        users: Optional[UserService] = None,
    ):
        self.platform = platform
        self.generator = generator
        self.store = store
        self.generation_timeout = generation_timeout
        self.users = users

    async def _require_comment(self, comment_id: str) -> Comment:
        comment = await self.store.get_comment(comment_id)
        if comment is None:
            raise ResourceNotFoundError("comment", comment_id)
        return comment

    # ========================================================================
    # Generation
    # ========================================================================

    async def build_prompt(
        self,
        comment: Comment,
        tone: str,
        additional_instructions: Optional[str] = None,
        model: Optional[str] = None,
    ) -> ReplyPrompt:
        video = await self.store.get_video(comment.video_id)
        return ReplyPrompt(
            comment_text=comment.text,
            comment_author=comment.author,
            tone=tone,
            video_title=video.title if video is not None else None,
            reply_history=[f"{reply.author}: {reply.text}" for reply in comment.replies],
            additional_instructions=additional_instructions,
            model=model,
        )

    async def _preferences(self, user_id: str) -> UserPreferences:
        if self.users is None:
            return UserPreferences()
        return await self.users.get_preferences(user_id)

    def _pick_model(
        self, requested: Optional[str], preferences: UserPreferences
    ) -> Optional[str]:
        if requested:
            return self.users.check_model(requested) if self.users else requested
        preferred = preferences.ai_model
        if preferred and self.users is not None:
            try:
                return self.users.check_model(preferred)
            except ValidationError:
                logger.warning(f"⚠️ Preferred model {preferred} is no longer allowed")
                return None
        return preferred

    async def generate_reply(
        self,
        ctx: AuthContext,
        comment_id: str,
        tone: Optional[str] = None,
        additional_instructions: Optional[str] = None,
        model: Optional[str] = None,
    ) -> GeneratedReply:
        """
        Draft a reply for a stored comment

        Tone and model default to the user's preferences. Never writes
        comments or replies; records a ``generate`` interaction on success.

        Raises:
            ValidationError: AI replies disabled, or model not allowed
            ResourceNotFoundError: Comment is not stored
            GenerationFailedError: Generator failed or timed out
            StoreFailureError: The interaction could not be recorded
        """
        preferences = await self._preferences(ctx.user_id)
        if not preferences.enable_ai_replies:
            raise ValidationError(
                "AI replies are disabled for this account",
                error_code="AI_REPLIES_DISABLED",
            )
        tone = tone or preferences.reply_tone
        model = self._pick_model(model, preferences)

        comment = await self._require_comment(comment_id)
        prompt = await self.build_prompt(comment, tone, additional_instructions, model)

        try:
            generated = await asyncio.wait_for(
                self.generator.generate(prompt), timeout=self.generation_timeout
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"⚠️ Generation for {comment_id} timed out")
            raise GenerationFailedError(
                f"Reply generation timed out after {self.generation_timeout:.0f}s"
            ) from e
        except GenerationFailedError:
            raise
        except Exception as e:
            logger.error(f"❌ Generation for {comment_id} failed: {e}")
            raise GenerationFailedError(f"Reply generation failed: {e}") from e

        await self.store.record_interaction(
            InteractionRecord(
                user_id=ctx.user_id,
                video_id=comment.video_id,
                comment_id=comment_id,
                interaction_type=InteractionType.GENERATE,
                data={
                    "tone": tone,
                    "model": generated.model,
                    "reply_text": generated.reply_text,
                },
            )
        )

        logger.info(f"🤖 Reply generated for comment {comment_id}")
        return generated

    # ========================================================================
    # Posting
    # ========================================================================

    async def post_reply(
        self,
        ctx: AuthContext,
        comment_id: str,
        reply_text: str,
        ai_generated: bool = False,
        ai_model: Optional[str] = None,
    ) -> Reply:
        """
        Post a reply once and record it

        Platform failures propagate unchanged with no store mutation.

        Raises:
            ValidationError: Empty reply text
            ResourceNotFoundError: Comment is not stored
            ReplyPostedStoreFailureError: Posted, but recording it locally failed
        """
        text = (reply_text or "").strip()
        if not text:
            raise ValidationError("Reply text must not be empty")

        comment = await self._require_comment(comment_id)

        posted = await self.platform.post_reply(ctx.credential, comment_id, text)

        reply = dataclasses.replace(
            posted,
            parent_comment_id=comment_id,
            text=posted.text or text,
            posted_by_app=True,
            ai_generated=ai_generated,
            ai_model=ai_model if ai_generated else None,
        )

        try:
            await self.store.upsert_replies(comment_id, [reply])
            await self.store.record_interaction(
                InteractionRecord(
                    user_id=ctx.user_id,
                    video_id=comment.video_id,
                    comment_id=comment_id,
                    interaction_type=InteractionType.POST,
                    reply_id=reply.reply_id,
                    data={
                        "reply_text": reply.text,
                        "ai_generated": ai_generated,
                        "ai_model": reply.ai_model,
                    },
                )
            )
        except ServiceError as e:
            logger.error(
                f"❌ Reply {reply.reply_id} posted but not recorded: {e.message}"
            )
            raise ReplyPostedStoreFailureError(
                "Reply was posted but could not be recorded locally",
                reply_id=reply.reply_id,
                comment_id=comment_id,
            ) from e

        logger.info(f"💬 Reply {reply.reply_id} recorded for comment {comment_id}")
        return reply
