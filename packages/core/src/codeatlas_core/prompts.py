"""Prompt construction for pull-request reviews.

Everything here is a pure function of the ReviewRequest: identical requests
produce byte-identical prompts, which keeps provider calls reproducible.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from codeatlas_core.models import CATEGORIES, SEVERITIES, ReviewRequest

SYSTEM_PROMPT = """You are an expert code reviewer analyzing pull requests for professional software teams.

Your role:
- Identify code quality issues, bugs, security vulnerabilities, and performance problems
- Provide actionable, constructive feedback
- Focus on maintainability, readability, and best practices
- Be specific: reference file paths, line numbers, and code snippets when possible

Review categories:
1. **Readability**: Code clarity, naming, documentation, structure
2. **Bug**: Logic errors, edge cases, potential runtime issues
3. **Security**: Vulnerabilities, injection risks, authentication/authorization issues
4. **Performance**: Inefficient algorithms, unnecessary operations, scalability concerns
5. **Maintainability**: Code duplication, complexity, technical debt

Severity levels:
- **critical**: Must fix before merge (security vulnerabilities, data loss risks)
- **high**: Should fix before merge (bugs, major performance issues)
- **medium**: Should address soon (code quality, minor bugs)
- **low**: Nice to have (style, minor optimizations)

Output format: You must respond with valid JSON matching the specified schema."""

_EXAMPLE_OUTPUT = """{
  "summary": "High-level summary of the PR and overall code quality (2-3 sentences)",
  "overallScore": 85,
  "findings": [
    {
      "category": "security",
      "severity": "high",
      "filePath": "src/auth.py",
      "lineStart": 42,
      "lineEnd": 45,
      "title": "Potential SQL injection vulnerability",
      "description": "User input is directly concatenated into SQL query without parameterization",
      "suggestion": "Use parameterized queries or the ORM query builder",
      "codeSnippet": "query = f\\"SELECT * FROM users WHERE id = {user_id}\\""
    }
  ]
}"""

_GUIDELINES = """Guidelines:
- Be thorough but concise
- Prioritize actionable feedback
- Include specific file paths and line numbers when possible
- Provide code snippets for context
- Focus on issues that matter for production code"""

_RESULT_SCHEMA = {
    "type": "object",
    "required": ["summary", "overallScore", "findings"],
    "properties": {
        "summary": {"type": "string"},
        "overallScore": {"type": "number", "minimum": 0, "maximum": 100},
        "findings": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["category", "severity", "title", "description"],
                "properties": {
                    "category": {"type": "string", "enum": list(CATEGORIES)},
                    "severity": {"type": "string", "enum": list(SEVERITIES)},
                    "filePath": {"type": "string"},
                    "lineStart": {"type": "number"},
                    "lineEnd": {"type": "number"},
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "suggestion": {"type": "string"},
                    "codeSnippet": {"type": "string"},
                },
            },
        },
    },
}

# Serialized once; the schema is part of the provider contract, not per request.
SCHEMA_DESCRIPTION = json.dumps(_RESULT_SCHEMA, separators=(",", ":"))


@dataclass(frozen=True)
class ReviewPrompt:
    system_prompt: str
    user_prompt: str
    schema_description: str

    def combined_system_prompt(self) -> str:
        """System instructions with the schema contract appended, as sent to providers."""
        return f"{self.system_prompt}\n\nYou must respond with valid JSON matching this schema:\n{self.schema_description}"


def build_system_prompt() -> str:
    return SYSTEM_PROMPT


def build_user_prompt(request: ReviewRequest) -> str:
    """Render the per-PR prompt.

    The file-change block is omitted entirely when there are no file changes,
    so the model never sees an empty section header.
    """
    file_summary = ""
    if request.file_changes:
        lines = "\n".join(f"- {f.path} (+{f.additions}/-{f.deletions})" for f in request.file_changes)
        file_summary = f"\n\nFile changes:\n{lines}"

    return f"""Review this pull request:

Repository: {request.repository}
Title: {request.title}
Author: {request.author}
Base branch: {request.base_branch}
Head branch: {request.head_branch}{file_summary}

Diff summary:
```
{request.diff_summary}
```

Provide a comprehensive code review in the following JSON format:
{_EXAMPLE_OUTPUT}

{_GUIDELINES}"""


def build_prompt(request: ReviewRequest) -> ReviewPrompt:
    return ReviewPrompt(
        system_prompt=build_system_prompt(),
        user_prompt=build_user_prompt(request),
        schema_description=SCHEMA_DESCRIPTION,
    )
