"""Command-line interface using Typer."""

from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from creative_engine import __version__
from creative_engine.errors import CreativeEngineError
from creative_engine.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="creative-engine",
    help="Creative Engine - ad script to video creative pipeline CLI",
    add_completion=False,
)

# Subcommand groups
batches_app = typer.Typer(help="Script batch commands")
approval_app = typer.Typer(help="Approval commands")
subtitles_app = typer.Typer(help="Caption commands")
app.add_typer(batches_app, name="batches")
app.add_typer(approval_app, name="approval")
app.add_typer(subtitles_app, name="subtitles")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Creative Engine v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Creative Engine - generate, render, review and publish ad creatives."""
    pass


@app.command()
def worker() -> None:
    """Start a Celery worker (for development)."""
    console.print("[bold blue]Starting Celery worker...[/bold blue]")

    import subprocess
    import sys

    subprocess.run(
        [
            sys.executable,
            "-m",
            "celery",
            "-A",
            "creative_engine.worker",
            "worker",
            "-Q",
            "celery,approval",
            "--loglevel=info",
        ],
        check=True,
    )


def _store():
    from creative_engine.db.session import SessionLocal
    from creative_engine.services.batch_store import BatchStore

    return BatchStore(SessionLocal)


# =============================================================================
# BATCH COMMANDS
# =============================================================================


@batches_app.command("recent")
def batches_recent(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of batches to show"),
) -> None:
    """List the most recent batches."""
    summaries = _store().recent_batches(limit)
    if not summaries:
        console.print("[dim]No batches yet[/dim]")
        return

    table = Table(title="Recent Batches")
    table.add_column("Batch", style="cyan")
    table.add_column("Status")
    table.add_column("Scripts", justify="right")
    table.add_column("Videos", justify="right")
    table.add_column("Market")
    table.add_column("Created")

    for s in summaries:
        table.add_row(
            s.batch_id,
            str(s.status),
            str(s.script_count),
            str(s.video_count),
            s.market or "-",
            s.created_at.strftime("%Y-%m-%d %H:%M") if s.created_at else "-",
        )
    console.print(table)


@batches_app.command("show")
def batches_show(batch_id: str = typer.Argument(..., help="Batch id")) -> None:
    """Show a batch and its scripts."""
    store = _store()
    try:
        batch = store.get_batch(batch_id)
    except CreativeEngineError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        raise typer.Exit(code=1)
    scripts = store.list_scripts(batch_id)

    console.print(
        Panel.fit(
            f"[cyan]Status:[/cyan] {batch.status}\n"
            f"[cyan]Scripts:[/cyan] {len(scripts)}/{batch.script_count}\n"
            f"[cyan]Market:[/cyan] {batch.market or '-'}\n"
            f"[cyan]Folder:[/cyan] {batch.folder_link or '-'}"
            + (f"\n[red]Error:[/red] {batch.error_message}" if batch.error_message else ""),
            title=f"Batch {batch.batch_id}",
            border_style="blue",
        )
    )

    table = Table()
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("File name")
    table.add_column("Audio")
    table.add_column("Videos", justify="right")
    for script in scripts:
        renders = [r for r in script.video_renders or [] if r.get("video_file_id")]
        table.add_row(
            str(script.script_index),
            script.title[:60],
            script.file_name,
            "yes" if script.audio_file else "-",
            str(len(renders)),
        )
    console.print(table)


@batches_app.command("validate")
def batches_validate(batch_id: str = typer.Argument(..., help="Batch id")) -> None:
    """Run the integrity checks on a batch."""
    from creative_engine.services.integrity import validate_batch

    store = _store()
    try:
        report = validate_batch(store.get_batch(batch_id), store.list_scripts(batch_id))
    except CreativeEngineError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        raise typer.Exit(code=1)

    console.print(
        f"Scripts {report.actual_count}/{report.script_count}, "
        f"with audio {report.scripts_with_audio}, with video {report.scripts_with_video}"
    )
    if report.valid:
        console.print("[bold green]✓ Batch is valid[/bold green]")
        return

    for issue in report.issues:
        console.print(f"[red]- {issue}[/red]")
    if report.has_hash_mismatch:
        console.print(f"[bold red]Tampered scripts: {', '.join(report.tampered)}[/bold red]")
    raise typer.Exit(code=1)


# =============================================================================
# APPROVAL COMMANDS
# =============================================================================


@approval_app.command("send")
def approval_send(
    batch_id: str = typer.Argument(..., help="Batch id"),
    delay: Optional[int] = typer.Option(
        None, "--delay", "-d", min=0, help="Minutes to wait before sending (default from settings)"
    ),
) -> None:
    """Send a batch for review."""
    from creative_engine.jobs.approval_tasks import get_approval_scheduler
    from creative_engine.utils.async_utils import run_async

    try:
        result = run_async(get_approval_scheduler().schedule_approval(batch_id, delay))
    except CreativeEngineError as e:
        console.print(f"[bold red]Error: {e.message}[/bold red]")
        raise typer.Exit(code=1)

    if result.sent:
        console.print(f"[bold green]✓ Sent {result.item_count} items for review[/bold green]")
    elif result.deferred:
        console.print(f"[green]{result.message}[/green]")
        console.print(f"[dim]Task ID: {result.task_id}[/dim]")
    else:
        console.print(f"[yellow]{result.message}[/yellow]")


# =============================================================================
# SUBTITLE COMMANDS
# =============================================================================


@subtitles_app.command("preview")
def subtitles_preview(
    text: str = typer.Argument(..., help="Script text"),
    duration: float = typer.Option(
        ..., "--duration", "-d", min=0.1, help="Audio length in seconds"
    ),
) -> None:
    """Print the captions a script would get for a given narration length."""
    from creative_engine.services.subtitles import segment, to_srt

    segments = segment(text, duration * 1000)
    if not segments:
        console.print("[yellow]No captions for empty text[/yellow]")
        raise typer.Exit(code=1)
    console.print(to_srt(segments))


if __name__ == "__main__":
    app()
