"""stats command: aggregate findings across review history."""

from __future__ import annotations

from collections import Counter

import click
from rich.console import Console
from rich.table import Table

from codeatlas_core.models import CATEGORIES, SEVERITIES

console = Console()


@click.command("stats")
@click.option("--repo", required=True, help="Repository (owner/name).")
@click.option("--top", default=10, show_default=True, help="Number of top entries to show per category.")
@click.pass_context
def stats_cmd(ctx, repo: str, top: int):
    """Show aggregated review statistics for a repository.

    Reports the average score, how many reviews degraded to a fallback, the
    severity and category distribution, and the most frequently flagged files.
    """
    from codeatlas_store.noop import NoOpStore

    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, NoOpStore):
        raise click.UsageError("No store configured. Add 'store: sqlite' to .codeatlas.yml.")

    records = store.list_reviews(repo)
    if not records:
        console.print("[yellow]No review records found for this repository.[/yellow]")
        return

    completed = [r for r in records if not r.fallback]
    total_findings = sum(len(r.findings) for r in records)
    severity_counter: Counter[str] = Counter()
    category_counter: Counter[str] = Counter()
    file_counter: Counter[str] = Counter()

    for record in completed:
        for finding in record.findings:
            severity_counter[finding.severity] += 1
            category_counter[finding.category] += 1
            if finding.file_path:
                file_counter[finding.file_path] += 1

    # --- Summary ---
    console.print(f"\n[bold]Review stats for [cyan]{repo}[/cyan][/bold]")
    console.print(f"  Total reviews:   {len(records)}")
    console.print(f"  Failed reviews:  {len(records) - len(completed)}")
    console.print(f"  Total findings:  {total_findings}")
    if completed:
        avg = sum(r.overall_score for r in completed) / len(completed)
        console.print(f"  Average score:   {avg:.1f}")

    # --- Severity breakdown ---
    if severity_counter:
        sev_table = Table(title="Severity Breakdown", show_header=True)
        sev_table.add_column("Severity", style="bold")
        sev_table.add_column("Count", justify="right")
        sev_table.add_column("% of total", justify="right")
        _sev_style = {"critical": "red", "high": "yellow", "medium": "blue", "low": "dim"}
        for sev in reversed(SEVERITIES):
            count = severity_counter.get(sev, 0)
            pct = f"{count / total_findings * 100:.1f}%" if total_findings else "0%"
            style = _sev_style.get(sev, "white")
            sev_table.add_row(f"[{style}]{sev}[/{style}]", str(count), pct)
        console.print(sev_table)

    # --- Category breakdown ---
    if category_counter:
        cat_table = Table(title="Category Breakdown", show_header=True)
        cat_table.add_column("Category", style="bold")
        cat_table.add_column("Count", justify="right")
        for cat in CATEGORIES:
            cat_table.add_row(cat, str(category_counter.get(cat, 0)))
        console.print(cat_table)

    # --- Most flagged files ---
    if file_counter:
        file_table = Table(title=f"Top {top} Most Flagged Files", show_header=True)
        file_table.add_column("File")
        file_table.add_column("Findings", justify="right")
        for file_path, count in file_counter.most_common(top):
            file_table.add_row(file_path, str(count))
        console.print(file_table)
