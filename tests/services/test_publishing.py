"""Tests for the publish state machine."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from cms_admin.errors import NotFoundError, StaleVersionError
from cms_admin.models.content import ContentStatus, PublishState
from cms_admin.models.requests import CreateContentRequest, UpdateContentRequest
from cms_admin.services.content import create_content, edit_content
from cms_admin.services.publishing import (
    apply_publish,
    apply_unpublish,
    publish_content,
    unpublish_content,
)

NOW = datetime(2024, 6, 1, 9, 0, tzinfo=UTC)


async def _create(repo, slug="about", **fields):
    request = CreateContentRequest(slug=slug, title=slug.title(), type="page", **fields)
    return await create_content(request, repo, user="editor", now=NOW)


class TestApplyPublish:
    """Pure transitions on a single record."""

    def test_publish_now(self, make_record):
        record = make_record(scheduled_publish_at=NOW + timedelta(days=1))
        published = apply_publish(record, publish_at=None, now=NOW, user="editor")

        assert published.status == ContentStatus.PUBLISHED
        assert published.published_at == NOW
        assert published.scheduled_publish_at is None
        assert published.version == record.version
        assert published.updated_by == "editor"

    def test_past_publish_at_publishes_immediately(self, make_record):
        published = apply_publish(
            make_record(), publish_at=NOW - timedelta(minutes=5), now=NOW, user="editor"
        )
        assert published.publish_state == PublishState.PUBLISHED
        assert published.published_at == NOW

    def test_publish_at_equal_to_now_publishes(self, make_record):
        published = apply_publish(make_record(), publish_at=NOW, now=NOW, user="editor")
        assert published.status == ContentStatus.PUBLISHED

    def test_future_publish_at_schedules(self, make_record):
        future = NOW + timedelta(days=2)
        record = make_record(status="published", published_at=NOW - timedelta(days=1))
        scheduled = apply_publish(record, publish_at=future, now=NOW, user="editor")

        assert scheduled.status == ContentStatus.DRAFT
        assert scheduled.scheduled_publish_at == future
        assert scheduled.published_at is None
        assert scheduled.publish_state == PublishState.SCHEDULED

    def test_naive_publish_at_treated_as_utc(self, make_record):
        future = datetime(2030, 1, 1, 0, 0)
        scheduled = apply_publish(make_record(), publish_at=future, now=NOW, user="editor")
        assert scheduled.scheduled_publish_at == future.replace(tzinfo=UTC)

    def test_unpublish_clears_both_timestamps(self, make_record):
        record = make_record(status="published", published_at=NOW)
        draft = apply_unpublish(record, now=NOW, user="editor")

        assert draft.status == ContentStatus.DRAFT
        assert draft.published_at is None
        assert draft.scheduled_publish_at is None
        assert draft.version == record.version

    def test_record_is_not_mutated(self, make_record):
        record = make_record()
        apply_publish(record, publish_at=None, now=NOW, user="editor")
        assert record.status == ContentStatus.DRAFT


class TestPublishContent:
    async def test_publish_keeps_version_and_count(self, memory_repo):
        await _create(memory_repo)
        published = await publish_content("about", memory_repo, now=NOW)

        assert published.version == 1
        assert published.status == ContentStatus.PUBLISHED
        assert published.published_at == NOW
        assert len(memory_repo.records("about")) == 1

    async def test_schedule_then_unpublish_cancels(self, memory_repo):
        await _create(memory_repo, "promo")
        future = NOW + timedelta(days=1)
        await publish_content("promo", memory_repo, publish_at=future, now=NOW)
        draft = await unpublish_content("promo", memory_repo, now=NOW)

        assert draft.publish_state == PublishState.DRAFT
        assert draft.scheduled_publish_at is None

    async def test_unknown_slug(self, memory_repo):
        with pytest.raises(NotFoundError):
            await publish_content("missing", memory_repo)
        with pytest.raises(NotFoundError):
            await unpublish_content("missing", memory_repo)

    async def test_expected_version_mismatch_is_stale(self, memory_repo):
        await _create(memory_repo)
        await edit_content(
            "about", UpdateContentRequest(version=1, title="About v2"), memory_repo, now=NOW
        )

        with pytest.raises(StaleVersionError) as exc_info:
            await publish_content("about", memory_repo, expected_version=1)
        assert exc_info.value.current_version == 2

        with pytest.raises(StaleVersionError):
            await unpublish_content("about", memory_repo, expected_version=1)

    async def test_matching_expected_version(self, memory_repo):
        await _create(memory_repo)
        published = await publish_content("about", memory_repo, expected_version=1, now=NOW)
        assert published.status == ContentStatus.PUBLISHED


class TestConcurrency:
    """Two callers that read the same version: at most one write lands."""

    async def test_concurrent_publishes_on_same_read(self, memory_repo):
        await _create(memory_repo)
        snapshot = await memory_repo.get_latest("about")

        results = await asyncio.gather(
            memory_repo.replace_current(
                apply_publish(snapshot, publish_at=None, now=NOW, user="a")
            ),
            memory_repo.replace_current(apply_unpublish(snapshot, now=NOW, user="b")),
            return_exceptions=True,
        )

        stale = [r for r in results if isinstance(r, StaleVersionError)]
        assert len(stale) == 1

    async def test_concurrent_edits_on_same_version(self, memory_repo):
        await _create(memory_repo)

        results = await asyncio.gather(
            edit_content("about", UpdateContentRequest(version=1, title="A"), memory_repo),
            edit_content("about", UpdateContentRequest(version=1, title="B"), memory_repo),
            return_exceptions=True,
        )

        assert sum(isinstance(r, StaleVersionError) for r in results) == 1
        assert (await memory_repo.get_latest("about")).version == 2

    async def test_publish_after_edit_from_same_read_is_stale(self, memory_repo):
        """An append moves the prior record's etag, so a publish holding it fails."""
        await _create(memory_repo)
        snapshot = await memory_repo.get_latest("about")
        await edit_content("about", UpdateContentRequest(version=1, title="v2"), memory_repo)

        with pytest.raises(StaleVersionError):
            await memory_repo.replace_current(
                apply_publish(snapshot, publish_at=None, now=NOW, user="a")
            )


class TestScenarios:
    async def test_about_lifecycle(self, memory_repo):
        created = await _create(memory_repo, "about")
        assert created.version == 1
        assert created.status == ContentStatus.DRAFT

        await publish_content("about", memory_repo, now=NOW)
        live = await memory_repo.get_latest_published("about")
        assert live.version == 1
        assert live.status == ContentStatus.PUBLISHED

        await edit_content(
            "about", UpdateContentRequest(version=1, title="About Us v2"), memory_repo, now=NOW
        )
        latest = await memory_repo.get_latest("about")
        assert latest.version == 2
        assert latest.title == "About Us v2"
        assert latest.status == ContentStatus.PUBLISHED
        assert (await memory_repo.get_latest_published("about")).version == 2

    async def test_promo_scheduled_then_published(self, memory_repo):
        await _create(memory_repo, "promo")
        future = NOW + timedelta(days=7)

        await publish_content("promo", memory_repo, publish_at=future, now=NOW)
        latest = await memory_repo.get_latest("promo")
        assert latest.status == ContentStatus.DRAFT
        assert latest.scheduled_publish_at == future
        assert latest.published_at is None

        later = future + timedelta(minutes=1)
        published = await publish_content("promo", memory_repo, now=later)
        assert published.version == 1
        assert published.status == ContentStatus.PUBLISHED
        assert published.published_at == later
        assert published.scheduled_publish_at is None
