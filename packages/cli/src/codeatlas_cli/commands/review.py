"""review command: run an AI review for a pull request."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table

from codeatlas_core.engine import build_engine
from codeatlas_core.errors import ConfigurationError, ReviewInputError
from codeatlas_core.gh.webhook import PullRequestEvent, parse_pull_request_event, request_from_event
from codeatlas_core.models import ReviewRequest, ReviewResult
from codeatlas_store.models import FindingRecord, ReviewRecord

console = Console()

_SEVERITY_STYLE = {"critical": "red", "high": "yellow", "medium": "blue", "low": "dim"}


def _result_to_record(result: ReviewResult, event: PullRequestEvent, provider: str) -> ReviewRecord:
    """Map an engine ReviewResult to a ReviewRecord for the store.

    The CLI owns this mapping: codeatlas_core has no store knowledge and
    codeatlas_store has no core knowledge.
    """
    return ReviewRecord(
        repository=event.repository,
        pr_number=event.number,
        pr_title=event.title,
        author=event.author,
        head_sha=event.head_sha,
        provider=provider,
        status="failed" if result.is_fallback else "completed",
        summary=result.summary,
        overall_score=result.overall_score,
        reviewed_at=result.metadata.get("timestamp") or datetime.now(timezone.utc).isoformat(),
        fallback=result.is_fallback,
        error=result.metadata.get("error"),
        findings=[
            FindingRecord(
                category=f.category,
                severity=f.severity,
                title=f.title,
                description=f.description,
                file_path=f.file_path,
                line_start=f.line_start,
                line_end=f.line_end,
                suggestion=f.suggestion,
            )
            for f in result.findings
        ],
    )


def print_review(result: ReviewResult) -> None:
    """Render a review result to the terminal."""
    if result.is_fallback:
        console.print(f"[bold red]Review degraded:[/bold red] {result.summary}")
        return

    score = result.overall_score
    color = "green" if score >= 80 else "yellow" if score >= 50 else "red"
    console.print(f"\n[bold]Score:[/bold] [{color}]{score}[/{color}]/100")
    console.print(f"{result.summary}\n")

    if not result.findings:
        console.print("[green]No findings.[/green]")
        return

    table = Table(title=f"{len(result.findings)} finding(s)", show_header=True, header_style="bold cyan")
    table.add_column("Severity", width=10)
    table.add_column("Category", width=16)
    table.add_column("Location", max_width=40)
    table.add_column("Title")
    for f in result.findings:
        style = _SEVERITY_STYLE.get(f.severity, "white")
        location = f.file_path or ""
        if location and f.line_start is not None:
            location += f":{f.line_start}"
            if f.line_end is not None and f.line_end != f.line_start:
                location += f"-{f.line_end}"
        table.add_row(f"[{style}]{f.severity}[/{style}]", f.category, location, f.title)
    console.print(table)


def _load_json(path: str) -> dict:
    with open(path, encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise click.UsageError(f"{path} is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise click.UsageError(f"{path} must contain a JSON object.")
    return data


@click.command("review")
@click.option(
    "--request",
    "request_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file describing the pull request (repository, title, author, diffSummary, ...).",
)
@click.option(
    "--event",
    "event_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="GitHub pull_request webhook payload. The review is saved to the configured store.",
)
@click.option(
    "--provider",
    type=click.Choice(["openai", "anthropic"]),
    default=None,
    help="AI provider. Overrides config file and AI_PROVIDER.",
)
@click.option("--json", "as_json", is_flag=True, help="Print the raw result as JSON.")
@click.pass_context
def review_cmd(ctx, request_path: str | None, event_path: str | None, provider: str | None, as_json: bool):
    """Review a pull request with the configured AI provider.

    \b
    Required environment variables:
      OPENAI_API_KEY       Required when using --provider openai
      ANTHROPIC_API_KEY    Required when using --provider anthropic
    """
    if (request_path is None) == (event_path is None):
        raise click.UsageError("Pass exactly one of --request or --event.")

    config = dict(ctx.obj["config"]) if ctx.obj else {}
    if provider is not None:
        config["provider"] = provider

    try:
        engine = build_engine(config)
    except ConfigurationError as e:
        raise click.UsageError(str(e))

    event = None
    if event_path is not None:
        try:
            event = parse_pull_request_event(_load_json(event_path))
        except ValueError as e:
            raise click.UsageError(str(e))
        if event is None:
            console.print("[yellow]Webhook action does not trigger a review. Nothing to do.[/yellow]")
            return
        request = request_from_event(event)
    else:
        try:
            request = ReviewRequest.from_dict(_load_json(request_path))
        except ValueError as e:
            raise click.UsageError(str(e))

    try:
        result = engine.review_pull_request(request)
    except ReviewInputError as e:
        raise click.UsageError(str(e))

    if event is not None:
        store = ctx.obj.get("store") if ctx.obj else None
        if store is not None:
            store.save(_result_to_record(result, event, engine.provider))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        print_review(result)
