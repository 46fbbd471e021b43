# tests/unit/test_reply_orchestrator.py
"""
Unit Tests for ReplyOrchestrator
Generation and at-most-once posting
"""

from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio

from yt_commenter.app.config import YouTubeAPISettings
from yt_commenter.domain.models import InteractionType, Video
from yt_commenter.infrastructure.clients.youtube_api import YouTubeAPIClient
from yt_commenter.infrastructure.repositories import UserRepository
from yt_commenter.services.exceptions import (
    GenerationFailedError,
    PostResponseUnreadableError,
    ReplyPostedStoreFailureError,
    ResourceConflictError,
    ResourceNotFoundError,
    StoreFailureError,
    ValidationError,
)
from yt_commenter.services.reply_orchestrator import ReplyOrchestrator
from yt_commenter.services.user_service import UserService

from tests.conftest import FakeGenerator, make_comment, make_reply


@pytest.fixture
def orchestrator(platform, generator, store):
    return ReplyOrchestrator(platform, generator, store, generation_timeout=1.0)


@pytest_asyncio.fixture
async def stored_comment(store):
    await store.upsert_videos([Video(video_id="vid1", title="My Tutorial")])
    await store.upsert_comments("vid1", [make_comment("c1", text="Great video!")])
    await store.upsert_replies("c1", [make_reply("r1", "c1", text="Agreed")])
    return await store.get_comment("c1")


# ============================================================================
# Generation
# ============================================================================


class TestGenerateReply:
    """Test reply drafting"""

    @pytest.mark.asyncio
    async def test_generate_builds_prompt_and_records(
        self, orchestrator, generator, store, auth_ctx, stored_comment
    ):
        generated = await orchestrator.generate_reply(
            auth_ctx, "c1", tone="professional", additional_instructions="Mention part 2"
        )

        assert generated.reply_text == "Thanks for watching!"
        prompt = generator.prompts[0]
        assert prompt.comment_text == "Great video!"
        assert prompt.video_title == "My Tutorial"
        assert prompt.reply_history == ["author_r1: Agreed"]
        assert prompt.tone == "professional"
        assert prompt.additional_instructions == "Mention part 2"

        records = await store.list_interactions(auth_ctx.user_id)
        assert len(records) == 1
        assert records[0].interaction_type == InteractionType.GENERATE
        assert records[0].data["model"] == "fake-model"

    @pytest.mark.asyncio
    async def test_generate_does_not_touch_comments(
        self, orchestrator, store, auth_ctx, stored_comment
    ):
        await orchestrator.generate_reply(auth_ctx, "c1")

        assert await store.get_comment("c1") == stored_comment

    @pytest.mark.asyncio
    async def test_generate_unknown_comment(self, orchestrator, generator, auth_ctx):
        with pytest.raises(ResourceNotFoundError):
            await orchestrator.generate_reply(auth_ctx, "missing")

        assert generator.prompts == []

    @pytest.mark.asyncio
    async def test_generator_timeout_leaves_store_untouched(
        self, platform, store, auth_ctx, stored_comment
    ):
        slow = FakeGenerator(delay=0.5)
        orchestrator = ReplyOrchestrator(platform, slow, store, generation_timeout=0.05)

        with pytest.raises(GenerationFailedError):
            await orchestrator.generate_reply(auth_ctx, "c1")

        assert await store.get_comment("c1") == stored_comment
        assert await store.list_interactions(auth_ctx.user_id) == []

    @pytest.mark.asyncio
    async def test_generator_errors_become_generation_failed(
        self, platform, store, auth_ctx, stored_comment
    ):
        broken = AsyncMock()
        broken.generate.side_effect = RuntimeError("model overloaded")
        orchestrator = ReplyOrchestrator(platform, broken, store)

        with pytest.raises(GenerationFailedError):
            await orchestrator.generate_reply(auth_ctx, "c1")


# ============================================================================
# Posting
# ============================================================================


class TestPostReply:
    """Test reply posting"""

    @pytest.mark.asyncio
    async def test_post_marks_replied_and_records(
        self, orchestrator, platform, store, auth_ctx, stored_comment
    ):
        reply = await orchestrator.post_reply(
            auth_ctx, "c1", "  Thank you!  ", ai_generated=True, ai_model="fake-model"
        )

        assert platform.posted == [("c1", "Thank you!")]
        assert reply.posted_by_app is True
        assert reply.ai_generated is True
        assert reply.ai_model == "fake-model"

        comment = await store.get_comment("c1")
        assert comment.replied_to is True
        assert [r.reply_id for r in comment.replies] == ["r1", reply.reply_id]

        records = await store.list_interactions(auth_ctx.user_id)
        posts = [r for r in records if r.interaction_type == InteractionType.POST]
        assert len(posts) == 1
        assert posts[0].reply_id == reply.reply_id

    @pytest.mark.asyncio
    async def test_manual_reply_has_no_model(self, orchestrator, auth_ctx, stored_comment):
        reply = await orchestrator.post_reply(
            auth_ctx, "c1", "Thanks", ai_generated=False, ai_model="ignored"
        )

        assert reply.ai_generated is False
        assert reply.ai_model is None

    @pytest.mark.asyncio
    async def test_empty_text_rejected_before_platform_call(
        self, orchestrator, platform, auth_ctx, stored_comment
    ):
        with pytest.raises(ValidationError):
            await orchestrator.post_reply(auth_ctx, "c1", "   ")

        assert platform.posted == []

    @pytest.mark.asyncio
    async def test_unknown_comment_rejected_before_platform_call(
        self, orchestrator, platform, auth_ctx
    ):
        with pytest.raises(ResourceNotFoundError):
            await orchestrator.post_reply(auth_ctx, "missing", "hello")

        assert not any(call[0] == "post_reply" for call in platform.calls)

    @pytest.mark.asyncio
    async def test_platform_failure_propagates_without_mutation(
        self, orchestrator, platform, store, auth_ctx, stored_comment
    ):
        platform.post_error = ResourceConflictError("Comments are disabled")

        with pytest.raises(ResourceConflictError):
            await orchestrator.post_reply(auth_ctx, "c1", "hello")

        assert [c for c in platform.calls if c[0] == "post_reply"] == [("post_reply", "c1", "hello")]
        assert await store.get_comment("c1") == stored_comment
        assert await store.list_interactions(auth_ctx.user_id) == []

    @pytest.mark.asyncio
    async def test_store_failure_after_post_is_reported(
        self, orchestrator, platform, store, auth_ctx, stored_comment, monkeypatch
    ):
        monkeypatch.setattr(
            store, "upsert_replies", AsyncMock(side_effect=StoreFailureError("db locked"))
        )

        with pytest.raises(ReplyPostedStoreFailureError) as exc_info:
            await orchestrator.post_reply(auth_ctx, "c1", "hello")

        assert exc_info.value.reply_id == "c1.posted1"
        assert exc_info.value.to_dict()["posted"] is True
        # Never re-posted
        assert platform.posted == [("c1", "hello")]

    @pytest.mark.asyncio
    async def test_unreadable_confirmation_is_reported_as_posted(
        self, generator, store, auth_ctx, stored_comment
    ):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(200, json={"kind": "youtube#comment"})
        )
        youtube = YouTubeAPIClient(
            settings=YouTubeAPISettings(base_url="https://yt.test/v3"),
            http_client=httpx.AsyncClient(transport=transport),
        )
        orchestrator = ReplyOrchestrator(youtube, generator, store)

        with pytest.raises(PostResponseUnreadableError) as exc_info:
            await orchestrator.post_reply(auth_ctx, "c1", "hello")

        assert exc_info.value.to_dict()["posted"] is True
        assert await store.get_comment("c1") == stored_comment
        await youtube.close()


# ============================================================================
# Preferences & Model Choice
# ============================================================================


class TestPreferences:
    """Per-user defaults and the model allow-list"""

    @pytest_asyncio.fixture
    async def users(self, db):
        async with db.session() as session:
            await UserRepository(session).upsert_profile("user-1", "Creator")
        return UserService(db, allowed_models=["gpt-4o-mini", "gpt-4"])

    @pytest.fixture
    def orchestrator(self, platform, generator, store, users):
        return ReplyOrchestrator(platform, generator, store, users=users)

    @pytest.mark.asyncio
    async def test_stored_preferences_are_defaults(
        self, orchestrator, users, generator, auth_ctx, stored_comment
    ):
        await users.update_preferences("user-1", reply_tone="professional", ai_model="gpt-4")

        await orchestrator.generate_reply(auth_ctx, "c1")

        assert generator.prompts[0].tone == "professional"
        assert generator.prompts[0].model == "gpt-4"

    @pytest.mark.asyncio
    async def test_request_overrides_preferences(
        self, orchestrator, users, generator, auth_ctx, stored_comment
    ):
        await users.update_preferences("user-1", reply_tone="professional")

        await orchestrator.generate_reply(auth_ctx, "c1", tone="helpful", model="gpt-4o-mini")

        assert generator.prompts[0].tone == "helpful"
        assert generator.prompts[0].model == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_disallowed_model_rejected_before_generation(
        self, orchestrator, generator, store, auth_ctx, stored_comment
    ):
        with pytest.raises(ValidationError):
            await orchestrator.generate_reply(auth_ctx, "c1", model="gpt-5-ultra")

        assert generator.prompts == []
        assert await store.list_interactions(auth_ctx.user_id) == []

    @pytest.mark.asyncio
    async def test_disabled_ai_replies(
        self, orchestrator, users, generator, auth_ctx, stored_comment
    ):
        await users.update_preferences("user-1", enable_ai_replies=False)

        with pytest.raises(ValidationError) as exc_info:
            await orchestrator.generate_reply(auth_ctx, "c1")

        assert exc_info.value.error_code == "AI_REPLIES_DISABLED"
        assert generator.prompts == []

    @pytest.mark.asyncio
    async def test_stale_preferred_model_falls_back_to_default(
        self, db, platform, generator, store, users, auth_ctx, stored_comment
    ):
        await users.update_preferences("user-1", ai_model="gpt-4")
        narrower = UserService(db, allowed_models=["gpt-4o-mini"])
        orchestrator = ReplyOrchestrator(platform, generator, store, users=narrower)

        await orchestrator.generate_reply(auth_ctx, "c1")

        assert generator.prompts[0].model is None
