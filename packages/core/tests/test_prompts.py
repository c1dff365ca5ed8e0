"""Tests for prompt construction."""

import json

from codeatlas_core.models import CATEGORIES, SEVERITIES, FileChange, ReviewRequest
from codeatlas_core.prompts import SYSTEM_PROMPT, build_prompt, build_system_prompt, build_user_prompt


def make_request(**overrides):
    fields = dict(
        repository="acme/api",
        title="Fix null deref",
        author="amy",
        base_branch="main",
        head_branch="fix-1",
        diff_summary="- null check added",
    )
    fields.update(overrides)
    return ReviewRequest(**fields)


class TestSystemPrompt:
    def test_is_fixed(self):
        assert build_system_prompt() == SYSTEM_PROMPT

    def test_lists_every_category(self):
        prompt = build_system_prompt().lower()
        for category in CATEGORIES:
            assert category in prompt

    def test_lists_every_severity_with_merge_meaning(self):
        prompt = build_system_prompt()
        for severity in SEVERITIES:
            assert f"**{severity}**" in prompt
        assert "Must fix before merge" in prompt
        assert "Should fix before merge" in prompt

    def test_does_not_vary_by_request(self):
        a = build_prompt(make_request())
        b = build_prompt(make_request(repository="other/repo", title="Another"))
        assert a.system_prompt == b.system_prompt
        assert a.schema_description == b.schema_description


class TestUserPrompt:
    def test_contains_identity_and_branches(self):
        prompt = build_user_prompt(make_request())
        assert "Repository: acme/api" in prompt
        assert "Title: Fix null deref" in prompt
        assert "Author: amy" in prompt
        assert "Base branch: main" in prompt
        assert "Head branch: fix-1" in prompt

    def test_diff_summary_embedded_verbatim(self):
        diff = "@@ -1 +1 @@\n-old {brace}\n+new"
        prompt = build_user_prompt(make_request(diff_summary=diff))
        assert f"```\n{diff}\n```" in prompt

    def test_file_changes_rendered_per_line(self):
        changes = [FileChange("src/a.py", 3, 1), FileChange("src/b.py", 0, 12)]
        prompt = build_user_prompt(make_request(file_changes=changes))
        assert "File changes:\n- src/a.py (+3/-1)\n- src/b.py (+0/-12)" in prompt

    def test_file_changes_section_omitted_when_absent(self):
        assert "File changes:" not in build_user_prompt(make_request())

    def test_file_changes_section_omitted_when_empty(self):
        assert "File changes:" not in build_user_prompt(make_request(file_changes=[]))

    def test_contains_example_output_and_guidelines(self):
        prompt = build_user_prompt(make_request())
        assert '"overallScore": 85' in prompt
        assert "Guidelines:" in prompt
        assert "Focus on issues that matter for production code" in prompt


class TestSchemaDescription:
    def test_is_valid_json_with_required_fields(self):
        schema = json.loads(build_prompt(make_request()).schema_description)
        assert schema["required"] == ["summary", "overallScore", "findings"]
        finding = schema["properties"]["findings"]["items"]
        assert finding["required"] == ["category", "severity", "title", "description"]
        assert finding["properties"]["category"]["enum"] == list(CATEGORIES)
        assert finding["properties"]["severity"]["enum"] == list(SEVERITIES)

    def test_score_bounds(self):
        schema = json.loads(build_prompt(make_request()).schema_description)
        score = schema["properties"]["overallScore"]
        assert score["minimum"] == 0
        assert score["maximum"] == 100

    def test_combined_system_prompt_appends_schema(self):
        prompt = build_prompt(make_request())
        combined = prompt.combined_system_prompt()
        assert combined.startswith(prompt.system_prompt)
        assert combined.endswith(prompt.schema_description)
        assert "You must respond with valid JSON matching this schema:" in combined


def test_identical_requests_give_identical_prompts():
    changes = [FileChange("src/a.py", 3, 1)]
    a = build_prompt(make_request(file_changes=changes))
    b = build_prompt(make_request(file_changes=list(changes)))
    assert a == b
