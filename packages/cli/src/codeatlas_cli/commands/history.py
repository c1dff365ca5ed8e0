"""history command: display past review records from the store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

console = Console()


@click.command("history")
@click.option("--repo", required=True, help="Repository (owner/name).")
@click.option("--pr", "pr_number", type=int, default=None, help="Filter by PR number.")
@click.option("--limit", default=20, show_default=True, help="Maximum number of records to show.")
@click.pass_context
def history_cmd(ctx, repo: str, pr_number: int | None, limit: int):
    """Show past AI review records for a repository.

    Reads from the configured store. Add 'store: sqlite' to .codeatlas.yml
    to start recording reviews.
    """
    from codeatlas_store.noop import NoOpStore

    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, NoOpStore):
        raise click.UsageError("No store configured. Add 'store: sqlite' to .codeatlas.yml.")

    records = store.list_reviews(repo, pr_number=pr_number)
    if not records:
        console.print("[yellow]No review records found.[/yellow]")
        return

    # Most recent first, capped at --limit.
    records = list(reversed(records))[:limit]

    table = Table(title=f"Review History: {repo}", show_header=True, header_style="bold cyan")
    table.add_column("PR", style="bold", width=6)
    table.add_column("Title", max_width=40)
    table.add_column("Status", width=10)
    table.add_column("Score", justify="right", width=6)
    table.add_column("Findings", justify="right", width=9)
    table.add_column("Provider", width=10)
    table.add_column("Reviewed At", width=20)

    for r in records:
        status_style = "red" if r.fallback else "green"
        table.add_row(
            f"#{r.pr_number}",
            r.pr_title[:40] if r.pr_title else "",
            f"[{status_style}]{r.status}[/{status_style}]",
            f"{r.overall_score:g}",
            str(len(r.findings)),
            r.provider,
            r.reviewed_at[:19].replace("T", " "),
        )

    console.print(table)
