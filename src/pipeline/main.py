"""CLI entry point for the streaming pipeline demo.

Runs a synthetic polling source through a timed, size-triggered batch
collector into a JSON-lines file, guarded by a circuit breaker.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from src.models.config import ConfigManager, StreamConfig
from src.models.data_models import RunSummary
from src.pipeline.orchestrator import PipelineOrchestrator
from src.pipeline.output import SummaryFormatter


console = Console()


@click.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    default="config/config.yaml",
    help="Path to configuration YAML file (ignored if missing)",
)
@click.option(
    "--duration",
    "-d",
    type=float,
    help="Seconds to run the pipeline (overrides config)",
)
@click.option(
    "--batch-size",
    "-b",
    type=int,
    help="Records per batch (overrides config)",
)
@click.option(
    "--flush-interval",
    "-f",
    type=float,
    help="Idle seconds before a timed flush (overrides config)",
)
@click.option(
    "--poll-interval",
    "-p",
    type=float,
    help="Seconds between polls (overrides config)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Directory for records.jsonl and summary.json (overrides config)",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides config)",
)
@click.option(
    "--no-progress",
    is_flag=True,
    help="Disable progress display (useful for CI/CD)",
)
@click.version_option(version="1.0.0", prog_name="stream-pipeline")
def main(
    config: Path,
    duration: Optional[float],
    batch_size: Optional[int],
    flush_interval: Optional[float],
    poll_interval: Optional[float],
    output: Optional[Path],
    log_level: Optional[str],
    no_progress: bool,
) -> None:
    """
    Stream Pipeline - poll, batch and write records with failure isolation.

    Examples:

        # Run with default configuration
        $ stream-pipeline

        # Short run with small batches
        $ stream-pipeline --duration 5 --batch-size 10 --poll-interval 1
    """
    try:
        cli_overrides = {
            "run_duration": duration,
            "batch_size": batch_size,
            "flush_interval": flush_interval,
            "poll_interval": poll_interval,
            "output_directory": str(output) if output is not None else None,
            "log_level": log_level.upper() if log_level is not None else None,
        }

        config_manager = ConfigManager(config)
        stream_config = config_manager.load_config(cli_overrides)

        _display_config_summary(stream_config, no_progress)

        summary = asyncio.run(_run_pipeline_with_progress(stream_config, no_progress))

        summary_path = Path(stream_config.output_directory) / "summary.json"
        SummaryFormatter().save(summary, str(summary_path))

        _display_results(summary, summary_path, no_progress)
        sys.exit(0)

    except KeyboardInterrupt:
        console.print("\n[yellow]Pipeline interrupted by user[/yellow]")
        sys.exit(130)  # Standard exit code for SIGINT
    except Exception as e:
        console.print(f"\n[red]Error:[/red] {e}", style="bold red")
        sys.exit(1)


async def _run_pipeline_with_progress(config: StreamConfig, no_progress: bool) -> RunSummary:
    """Run the pipeline, with a spinner unless progress is disabled."""
    orchestrator = PipelineOrchestrator(config)

    if no_progress:
        console.print("[cyan]Running pipeline...[/cyan]")
        return await orchestrator.run()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        task_id = progress.add_task(
            f"[cyan]Streaming for {config.run_duration:g}s...", total=None
        )
        summary = await orchestrator.run()
        progress.update(task_id, completed=True)
        return summary


def _display_config_summary(config: StreamConfig, no_progress: bool) -> None:
    """Display configuration summary before running."""
    if no_progress:
        return

    console.print("\n[bold cyan]Pipeline Configuration[/bold cyan]")
    console.print(f"  Batch Size: {config.batch_size}")
    console.print(f"  Flush Interval: {config.flush_interval}s")
    console.print(f"  Poll Interval: {config.poll_interval}s")
    console.print(
        f"  Circuit: {config.circuit_failure_threshold} failures / {config.circuit_timeout}s"
    )
    console.print(f"  Duration: {config.run_duration}s")
    console.print()


def _display_results(summary: RunSummary, summary_path: Path, no_progress: bool) -> None:
    """Display final results summary."""
    if no_progress:
        console.print(f"✓ Pipeline complete: {summary.records_written} records written")
        console.print(f"✓ Summary saved to: {summary_path}")
        return

    console.print("\n[bold green]Pipeline Complete![/bold green]\n")

    table = Table(title="Run Summary", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Records Fetched", str(summary.records_fetched))
    table.add_row("Records Written", str(summary.records_written))
    table.add_row("Batches Written", str(summary.batches_written))
    table.add_row("Failed Writes", str(summary.failed_writes))
    table.add_row("Fetch Errors", str(summary.fetch_errors))
    table.add_row("Records Discarded", str(summary.records_discarded))
    table.add_row("Circuit State", summary.circuit_state.value)
    table.add_row("Elapsed", f"{summary.elapsed_seconds:.2f}s")

    console.print(table)
    console.print()
    console.print(f"[bold]Summary saved to:[/bold] {summary_path}")
    console.print()


if __name__ == "__main__":
    main()
