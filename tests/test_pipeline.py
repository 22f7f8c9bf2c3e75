"""Tests for the comment resolution pipeline across its three variants."""

import pytest

from lastcommenter.config import LastCommenterConfig, PipelineVariant
from lastcommenter.host import ListContext
from lastcommenter.markup import NEUTRAL_BACKGROUND
from lastcommenter.models import AdministratorPair, LookupStatus, ResolvedPayload
from lastcommenter.pipeline import CommentResolutionPipeline

from tests.conftest import FakeListClient, make_comment, person


def _pipeline(client, list_context, variant, **settings) -> CommentResolutionPipeline:
    config = LastCommenterConfig(variant=variant, display_timezone="UTC", **settings)
    return CommentResolutionPipeline(client, list_context, config)


class TestAdminMatch:
    @pytest.mark.asyncio
    async def test_author_is_first_administrator(self, list_context):
        client = FakeListClient(
            comments={10: [make_comment(email="boss@x.com")]},
            items={10: {"admin_1": person("boss@x.com"), "admin_2": person("deputy@x.com")}},
        )

        resolution = await _pipeline(client, list_context, PipelineVariant.ADMIN_MATCH).resolve_row(10)

        payload = resolution.payload
        assert payload.is_admin_match is True
        assert payload.background == NEUTRAL_BACKGROUND
        assert payload.text.endswith("admin: yes")
        assert "background-color: transparent;" in payload.markup

    @pytest.mark.asyncio
    async def test_author_is_second_administrator(self, list_context):
        client = FakeListClient(
            comments={10: [make_comment(email="deputy@x.com")]},
            items={10: {"admin_1": person("boss@x.com"), "admin_2": person("deputy@x.com")}},
        )
        resolution = await _pipeline(client, list_context, PipelineVariant.ADMIN_MATCH).resolve_row(10)
        assert resolution.payload.is_admin_match is True

    @pytest.mark.asyncio
    async def test_row_without_administrators(self, list_context):
        client = FakeListClient(comments={10: [make_comment(email="a@x.com")]}, items={10: {}})

        resolution = await _pipeline(client, list_context, PipelineVariant.ADMIN_MATCH).resolve_row(10)

        payload = resolution.payload
        assert resolution.annotation_status is LookupStatus.FOUND
        assert payload.is_admin_match is False
        assert payload.background == "#fff4ce"
        assert payload.text == "at: 03/05/2024, 02:07 PM\nby: Ada Lovelace a@x.com\nadmin: no"
        assert "background-color: #fff4ce;" in payload.markup

    @pytest.mark.asyncio
    async def test_case_sensitive_comparison(self, list_context):
        client = FakeListClient(
            comments={10: [make_comment(email="Boss@X.com")]},
            items={10: {"admin_1": person("boss@x.com")}},
        )
        resolution = await _pipeline(client, list_context, PipelineVariant.ADMIN_MATCH).resolve_row(10)
        assert resolution.payload.is_admin_match is False

    @pytest.mark.asyncio
    async def test_empty_author_email_never_matches_empty_administrator(self, list_context):
        client = FakeListClient(comments={10: [make_comment(email="")]}, items={10: {"admin_1": person("")}})
        resolution = await _pipeline(client, list_context, PipelineVariant.ADMIN_MATCH).resolve_row(10)
        assert resolution.payload.is_admin_match is False

    @pytest.mark.asyncio
    async def test_administrator_failure_still_renders_comment(self, list_context):
        client = FakeListClient(comments={10: [make_comment(email="boss@x.com")]}, failing=("item",))
        resolution = await _pipeline(client, list_context, PipelineVariant.ADMIN_MATCH).resolve_row(10)
        assert resolution.payload.is_admin_match is False
        assert "by: Ada Lovelace boss@x.com" in resolution.payload.text

    @pytest.mark.asyncio
    async def test_administrators_fetched_even_without_comments(self, list_context):
        client = FakeListClient(items={10: {"admin_1": person("boss@x.com")}})

        resolution = await _pipeline(client, list_context, PipelineVariant.ADMIN_MATCH).resolve_row(10)

        assert resolution.payload == ResolvedPayload.empty()
        assert resolution.annotation_status is LookupStatus.NOT_FOUND
        assert len(client.calls) == 2

    @pytest.mark.asyncio
    async def test_custom_highlight(self, list_context):
        client = FakeListClient(comments={10: [make_comment()]})
        pipeline = _pipeline(client, list_context, PipelineVariant.ADMIN_MATCH, highlight_color="#ffe0e0")
        resolution = await pipeline.resolve_row(10)
        assert resolution.payload.background == "#ffe0e0"


class TestEmailOnly:
    @pytest.mark.asyncio
    async def test_plain_payload(self, list_context):
        client = FakeListClient(comments={10: [make_comment()]})

        resolution = await _pipeline(client, list_context, PipelineVariant.EMAIL_ONLY).resolve_row(10)

        payload = resolution.payload
        assert payload.text == "at: 03/05/2024, 02:07 PM\nby: Ada Lovelace a@x.com"
        assert payload.markup == (
            '<div style="padding: 4px; font-size: 11px; color: #000000; line-height: 1.3;">'
            "at: 03/05/2024, 02:07 PM<br>by: Ada Lovelace a@x.com</div>"
        )
        assert payload.is_admin_match is None
        assert payload.background is None

    @pytest.mark.asyncio
    async def test_no_administrator_request(self, list_context):
        client = FakeListClient(comments={10: [make_comment()]})
        await _pipeline(client, list_context, PipelineVariant.EMAIL_ONLY).resolve_row(10)
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_no_comments_is_empty(self, list_context):
        client = FakeListClient()
        resolution = await _pipeline(client, list_context, PipelineVariant.EMAIL_ONLY).resolve_row(10)
        assert resolution.payload.is_empty
        assert resolution.annotation_status is LookupStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_failed_lookup_is_empty_but_tagged(self, list_context):
        client = FakeListClient(comments={10: [make_comment()]}, failing=("comments",))
        resolution = await _pipeline(client, list_context, PipelineVariant.EMAIL_ONLY).resolve_row(10)
        assert resolution.payload.is_empty
        assert resolution.annotation_status is LookupStatus.FAILED
        assert resolution.error is not None

    @pytest.mark.asyncio
    async def test_missing_list_context_is_empty(self):
        client = FakeListClient(comments={10: [make_comment()]})
        pipeline = _pipeline(client, ListContext(), PipelineVariant.EMAIL_ONLY)
        resolution = await pipeline.resolve_row(10)
        assert resolution.payload.is_empty
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_author_markup_is_escaped(self, list_context):
        client = FakeListClient(comments={10: [make_comment(first_name="<b>Eve</b>", last_name=None)]})
        resolution = await _pipeline(client, list_context, PipelineVariant.EMAIL_ONLY).resolve_row(10)
        assert "<b>" not in resolution.payload.markup
        assert "&lt;b&gt;Eve&lt;/b&gt;" in resolution.payload.markup


class TestEditorFallback:
    @pytest.mark.asyncio
    async def test_comment_takes_precedence(self, list_context):
        client = FakeListClient(comments={10: [make_comment()]}, items={10: {"Editor": person("ed@x.com")}})

        resolution = await _pipeline(client, list_context, PipelineVariant.EDITOR_FALLBACK).resolve_row(10)

        assert "by: Ada Lovelace a@x.com" in resolution.payload.text
        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_editor_email(self, list_context):
        client = FakeListClient(items={10: {"Editor": person("ed@x.com", "Ed Itor")}})
        resolution = await _pipeline(client, list_context, PipelineVariant.EDITOR_FALLBACK).resolve_row(10)
        assert resolution.payload.text == "ed@x.com"
        assert resolution.annotation_status is LookupStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_editor_display_name(self, list_context):
        client = FakeListClient(items={10: {"Editor": person(title="Ed Itor")}})
        resolution = await _pipeline(client, list_context, PipelineVariant.EDITOR_FALLBACK).resolve_row(10)
        assert resolution.payload.text == "Ed Itor"

    @pytest.mark.asyncio
    async def test_no_editor(self, list_context):
        client = FakeListClient(items={10: {}})
        resolution = await _pipeline(client, list_context, PipelineVariant.EDITOR_FALLBACK).resolve_row(10)
        assert resolution.payload.text == "No editor"

    @pytest.mark.asyncio
    async def test_editor_failure_is_empty(self, list_context):
        client = FakeListClient(failing=("item",))
        resolution = await _pipeline(client, list_context, PipelineVariant.EDITOR_FALLBACK).resolve_row(10)
        assert resolution.payload.is_empty

    @pytest.mark.asyncio
    async def test_verbose_diagnostics_logs_steps(self, list_context, caplog):
        client = FakeListClient(items={10: {"Editor": person("ed@x.com")}})
        pipeline = _pipeline(client, list_context, PipelineVariant.EDITOR_FALLBACK, verbose_diagnostics=True)

        with caplog.at_level("INFO", logger="lastcommenter.pipeline"):
            await pipeline.resolve_row(10)

        assert "Editor fallback for row 10" in caplog.text

    @pytest.mark.asyncio
    async def test_quiet_instance_does_not_silence_verbose_one(self, list_context, caplog):
        client = FakeListClient(items={10: {"Editor": person("ed@x.com")}, 11: {"Editor": person("ed@x.com")}})
        verbose = _pipeline(client, list_context, PipelineVariant.EDITOR_FALLBACK, verbose_diagnostics=True)
        quiet = _pipeline(client, list_context, PipelineVariant.EDITOR_FALLBACK)

        with caplog.at_level("INFO", logger="lastcommenter.pipeline"):
            await verbose.resolve_row(10)
            await quiet.resolve_row(11)

        assert "Editor fallback for row 10" in caplog.text
        assert "Editor fallback for row 11" not in caplog.text


class ExplodingAdministrators:
    async def fetch(self, list_context, row_id) -> AdministratorPair:
        raise RuntimeError("boom")


class TestUnexpectedErrors:
    @pytest.mark.asyncio
    async def test_pipeline_never_raises(self, list_context):
        client = FakeListClient(comments={10: [make_comment()]})
        pipeline = CommentResolutionPipeline(
            client,
            list_context,
            LastCommenterConfig(variant=PipelineVariant.ADMIN_MATCH),
            administrator_fetcher=ExplodingAdministrators(),
        )

        resolution = await pipeline.resolve_row(10)

        assert resolution.payload == ResolvedPayload.empty()
        assert resolution.annotation_status is LookupStatus.FAILED
        assert "boom" in resolution.error

    @pytest.mark.asyncio
    async def test_negative_row_is_failed_without_request(self, list_context):
        client = FakeListClient(comments={10: [make_comment()]})
        pipeline = _pipeline(client, list_context, PipelineVariant.ADMIN_MATCH)

        resolution = await pipeline.resolve_row(-1)

        assert resolution.payload == ResolvedPayload.empty()
        assert resolution.annotation_status is LookupStatus.FAILED
        assert client.calls == []


@pytest.mark.asyncio
async def test_resolution_is_idempotent(list_context):
    client = FakeListClient(comments={7: [make_comment()]}, items={7: {"admin_1": person("a@x.com")}})
    pipeline = _pipeline(client, list_context, PipelineVariant.ADMIN_MATCH)

    first = await pipeline.resolve_row(7)
    second = await pipeline.resolve_row(7)

    assert first.payload.markup == second.payload.markup
    assert first.payload.text == second.payload.text
