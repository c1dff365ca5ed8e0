"""Tests for the review engine: input validation, enrichment and fallback."""

import json
from datetime import datetime
from unittest.mock import MagicMock

import pytest
from anthropic.types import TextBlock

from codeatlas_core.engine import Provider, ReviewDegraded, ReviewEngine, ReviewSucceeded, build_engine
from codeatlas_core.errors import ConfigurationError, ProviderError, ReviewInputError
from codeatlas_core.models import FileChange, Finding, ReviewRequest, ReviewResult
from codeatlas_core.providers.anthropic import AnthropicReviewer
from codeatlas_core.providers.openai import OpenAIReviewer

REQUEST = ReviewRequest(
    repository="acme/api",
    title="Fix null deref",
    author="amy",
    base_branch="main",
    head_branch="fix-1",
    diff_summary="- null check added",
)


def make_result(**overrides):
    fields = dict(
        summary="Adds a null check.",
        overall_score=92,
        findings=[Finding(category="bug", severity="high", title="t", description="d")],
        metadata={"provider": "openai", "model": "gpt-4o", "tokensUsed": 10},
    )
    fields.update(overrides)
    return ReviewResult(**fields)


class StubReviewer:
    def __init__(self, result=None, error=None):
        self._result = result
        self._error = error
        self.calls = 0

    def review(self, request):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._result


def make_payload(**overrides):
    payload = {
        "summary": "Adds a null check.",
        "overallScore": 92,
        "findings": [{"category": "bug", "severity": "high", "title": "t", "description": "d"}],
    }
    payload.update(overrides)
    return payload


def make_engine(result=None, error=None, provider="openai"):
    reviewer = StubReviewer(result=result if result is not None else make_result(), error=error)
    return ReviewEngine(reviewer, provider), reviewer


def assert_fallback(result, repository="acme/api"):
    assert result.overall_score == 0
    assert result.findings == []
    assert result.metadata["fallback"] is True
    assert isinstance(result.metadata["error"], str) and result.metadata["error"]
    assert result.metadata["repository"] == repository
    assert result.summary == f"Review failed due to: {result.metadata['error']}"


# ---------------------------------------------------------------------------
# Success path
# ---------------------------------------------------------------------------


class TestSuccess:
    def test_valid_review_returned(self):
        engine, _ = make_engine()
        result = engine.review_pull_request(REQUEST)
        assert result.overall_score == 92
        assert len(result.findings) == 1
        assert not result.metadata.get("fallback")
        assert result.is_fallback is False

    def test_engine_metadata_added(self):
        engine, _ = make_engine()
        metadata = engine.review_pull_request(REQUEST).metadata
        assert metadata["provider"] == "openai"
        assert metadata["repository"] == "acme/api"
        assert metadata["prTitle"] == "Fix null deref"
        assert isinstance(metadata["processingTime"], int)
        assert datetime.fromisoformat(metadata["timestamp"]).tzinfo is not None

    def test_adapter_metadata_preserved(self):
        engine, _ = make_engine()
        metadata = engine.review_pull_request(REQUEST).metadata
        assert metadata["model"] == "gpt-4o"
        assert metadata["tokensUsed"] == 10

    def test_engine_keys_win_on_collision(self):
        conflicting = {
            "provider": "someone-else",
            "processingTime": -1,
            "repository": "wrong/repo",
            "prTitle": "wrong",
            "timestamp": "1970-01-01T00:00:00",
        }
        engine, _ = make_engine(result=make_result(metadata=conflicting), provider="anthropic")
        metadata = engine.review_pull_request(REQUEST).metadata
        assert metadata["provider"] == "anthropic"
        assert metadata["processingTime"] >= 0
        assert metadata["repository"] == "acme/api"
        assert metadata["prTitle"] == "Fix null deref"
        assert metadata["timestamp"] != "1970-01-01T00:00:00"

    def test_processing_time_in_milliseconds(self, mocker):
        mocker.patch("codeatlas_core.engine.time.monotonic", side_effect=[10.0, 10.25])
        engine, _ = make_engine()
        assert engine.review_pull_request(REQUEST).metadata["processingTime"] == 250

    def test_findings_order_not_changed(self):
        findings = [
            Finding(category="readability", severity="low", title="first", description="d"),
            Finding(category="security", severity="critical", title="second", description="d"),
        ]
        engine, _ = make_engine(result=make_result(findings=findings))
        assert [f.title for f in engine.review_pull_request(REQUEST).findings] == ["first", "second"]

    def test_dict_result_from_untrusted_adapter_is_validated(self):
        payload = {"summary": "ok", "overallScore": 70, "findings": []}
        engine, _ = make_engine(result=payload)
        result = engine.review_pull_request(REQUEST)
        assert isinstance(result, ReviewResult)
        assert result.overall_score == 70


# ---------------------------------------------------------------------------
# Fallback path
# ---------------------------------------------------------------------------


class TestFallback:
    def test_provider_timeout(self):
        engine, _ = make_engine(error=ProviderError("OpenAI", "Request timed out."))
        result = engine.review_pull_request(REQUEST)
        assert_fallback(result)
        assert "timed out" in result.metadata["error"]

    def test_fallback_feedback_placeholders(self):
        engine, _ = make_engine(error=ProviderError("OpenAI", "boom"))
        feedback = engine.review_pull_request(REQUEST).feedback
        assert feedback.score == 0
        for text in (feedback.readability, feedback.security, feedback.performance, feedback.maintainability):
            assert text == "Unable to analyze due to processing error"

    def test_fallback_timestamp_present(self):
        engine, _ = make_engine(error=ProviderError("OpenAI", "boom"))
        assert datetime.fromisoformat(engine.review_pull_request(REQUEST).metadata["timestamp"])

    def test_empty_summary_from_adapter_degrades(self):
        engine, _ = make_engine(result=make_payload(summary=""))
        assert_fallback(engine.review_pull_request(REQUEST))

    def test_out_of_range_score_from_adapter_degrades(self):
        engine, _ = make_engine(result=make_payload(overallScore=101))
        assert_fallback(engine.review_pull_request(REQUEST))

    def test_unknown_severity_degrades_naming_index_and_field(self):
        findings = [
            {"category": "bug", "severity": "high", "title": "t", "description": "d"},
            {"category": "bug", "severity": "urgent", "title": "t", "description": "d"},
        ]
        engine, _ = make_engine(result=make_payload(findings=findings))
        result = engine.review_pull_request(REQUEST)
        assert_fallback(result)
        assert "Finding 1: severity" in result.metadata["error"]

    def test_unexpected_exception_degrades(self):
        engine, _ = make_engine(error=KeyError("choices"))
        assert_fallback(engine.review_pull_request(REQUEST))

    def test_exception_without_message_still_has_error_text(self):
        engine, _ = make_engine(error=RuntimeError())
        result = engine.review_pull_request(REQUEST)
        assert result.metadata["error"] == "RuntimeError"

    def test_outcome_is_explicit(self):
        engine, _ = make_engine(error=ProviderError("OpenAI", "boom"))
        outcome = engine._attempt(REQUEST)
        assert isinstance(outcome, ReviewDegraded)
        assert outcome.error == "OpenAI review failed: boom"

        engine, _ = make_engine()
        assert isinstance(engine._attempt(REQUEST), ReviewSucceeded)


# ---------------------------------------------------------------------------
# Caller input errors propagate
# ---------------------------------------------------------------------------


class TestInputErrors:
    @pytest.mark.parametrize("missing", ["repository", "title", "author"])
    def test_missing_identity_raises_without_calling_provider(self, missing):
        engine, reviewer = make_engine()
        fields = dict(repository="acme/api", title="t", author="amy", diff_summary="x")
        fields[missing] = ""
        with pytest.raises(ReviewInputError):
            engine.review_pull_request(ReviewRequest(**fields))
        assert reviewer.calls == 0

    def test_scalar_file_changes_raise(self):
        engine, reviewer = make_engine()
        request = ReviewRequest(repository="acme/api", title="t", author="amy", file_changes="src/a.py")
        with pytest.raises(ReviewInputError):
            engine.review_pull_request(request)
        assert reviewer.calls == 0

    def test_raw_dict_file_change_raises(self):
        engine, reviewer = make_engine()
        request = ReviewRequest(
            repository="acme/api",
            title="t",
            author="amy",
            file_changes=[{"path": "a.py", "additions": 1, "deletions": 0}],
        )
        with pytest.raises(ReviewInputError, match="File change 0"):
            engine.review_pull_request(request)
        assert reviewer.calls == 0

    def test_negative_counts_raise(self):
        engine, reviewer = make_engine()
        request = ReviewRequest(
            repository="acme/api", title="t", author="amy", file_changes=[FileChange("a.py", -3, -1)]
        )
        with pytest.raises(ReviewInputError, match="additions"):
            engine.review_pull_request(request)
        assert reviewer.calls == 0


# ---------------------------------------------------------------------------
# End to end through a real adapter with a mocked SDK client
# ---------------------------------------------------------------------------


class TestThroughAnthropicAdapter:
    def _engine(self, text):
        reviewer = AnthropicReviewer(api_key="key")
        reviewer.client = MagicMock()
        response = MagicMock()
        response.content = [TextBlock(type="text", text=text)]
        response.usage = MagicMock(input_tokens=5, output_tokens=5)
        reviewer.client.messages.create.return_value = response
        return ReviewEngine(reviewer, Provider.ANTHROPIC)

    def test_fenced_json_review_succeeds(self):
        engine = self._engine('```json\n{"summary":"ok","overallScore":50,"findings":[]}\n```')
        result = engine.review_pull_request(REQUEST)
        assert result.summary == "ok"
        assert result.metadata["provider"] == "anthropic"
        assert result.metadata["model"] == "claude-3-opus-20240229"
        assert result.metadata["tokensUsed"] == 10

    def test_empty_summary_degrades(self):
        engine = self._engine(json.dumps({"summary": "", "overallScore": 50, "findings": []}))
        result = engine.review_pull_request(REQUEST)
        assert_fallback(result)
        assert result.metadata["error"].startswith("Anthropic review failed:")


# ---------------------------------------------------------------------------
# build_engine
# ---------------------------------------------------------------------------


class TestBuildEngine:
    def test_openai(self):
        engine = build_engine({"provider": "openai", "openai_api_key": "sk-test", "openai_model": "gpt-4o"})
        assert engine.provider == "openai"
        assert isinstance(engine._reviewer, OpenAIReviewer)
        assert engine._reviewer.model == "gpt-4o"

    def test_anthropic_default_model(self):
        engine = build_engine({"provider": "anthropic", "anthropic_api_key": "ant-test", "anthropic_model": None})
        assert isinstance(engine._reviewer, AnthropicReviewer)
        assert engine._reviewer.model == AnthropicReviewer.DEFAULT_MODEL

    def test_timeout_passed_to_client(self):
        engine = build_engine({"provider": "openai", "openai_api_key": "sk-test", "timeout": 12})
        assert engine._reviewer.client.timeout == 12

    @pytest.mark.parametrize("provider", ["gemini", "", None, "OpenAI"])
    def test_unknown_provider_is_fatal(self, provider):
        with pytest.raises(ConfigurationError, match="Unsupported AI provider"):
            build_engine({"provider": provider, "openai_api_key": "sk", "anthropic_api_key": "ant"})

    def test_missing_openai_key_is_fatal(self):
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            build_engine({"provider": "openai", "openai_api_key": None, "anthropic_api_key": "ant"})

    def test_missing_anthropic_key_is_fatal(self):
        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            build_engine({"provider": "anthropic", "openai_api_key": "sk"})

    def test_missing_sdk_is_fatal(self, mocker):
        mocker.patch("codeatlas_core.providers.openai._OpenAI", None)
        with pytest.raises(ConfigurationError, match="openai"):
            build_engine({"provider": "openai", "openai_api_key": "sk"})

    def test_engine_rejects_unknown_provider_directly(self):
        with pytest.raises(ConfigurationError, match="Unsupported AI provider"):
            ReviewEngine(StubReviewer(), "gemini")
