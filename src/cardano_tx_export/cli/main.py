"""CLI for cardano-tx-export."""

import asyncio
import json
import logging
import os
import signal
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table
from rich.traceback import install

from cardano_tx_export.core.cancel import CancelToken
from cardano_tx_export.core.exporter import TransactionExporter
from cardano_tx_export.core.models import AssetFilter, ExportOptions, ExportPhase, ExportProgress, ExportResult
from cardano_tx_export.data import get_all_supported_networks, get_exporter_settings, get_network_config
from cardano_tx_export.indexer import IndexerClient, RateLimiter, ResponseCache

# Install rich traceback handler
install(show_locals=True)

app = typer.Typer(
    name="cardano-tx-export",
    help="Export a Cardano wallet's transaction and staking reward history to CSV",
    add_completion=False,
)

console = Console()

PHASE_LABELS = {
    ExportPhase.FETCHING: "Discovering transactions",
    ExportPhase.PROCESSING: "Fetching transaction details",
    ExportPhase.EXPORTING: "Generating report",
}


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=debug)],
    )
    # Keep request lines out of debug output
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _build_client(network: str, project_id: str) -> IndexerClient:
    """
    Create an indexer client configured for a network.

    Parameters
    ----------
    network : str
        Network name from networks.yaml
    project_id : str
        Blockfrost project credential

    Returns
    -------
    IndexerClient
        Client with the network's throttle and cache settings

    """
    config = get_network_config(network)
    return IndexerClient(
        project_id=project_id,
        base_url=config["base_url"],
        rate_limiter=RateLimiter(min_interval=config["throttle"]["min_interval_seconds"]),
        cache=ResponseCache(default_ttl=config["cache_ttl_seconds"]),
    )


def _end_of_day(value: datetime | None) -> datetime | None:
    """Make a date-only upper bound include the whole day."""
    if value is None:
        return None
    if value.hour == value.minute == value.second == value.microsecond == 0:
        return value + timedelta(days=1) - timedelta(microseconds=1)
    return value


async def _run_export(
    exporter: TransactionExporter,
    address: str,
    stake_address: str | None,
    options: ExportOptions,
) -> ExportResult:
    cancel = CancelToken()
    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGINT, cancel.cancel)
    except NotImplementedError:
        # Windows event loops; Ctrl-C then raises KeyboardInterrupt instead
        pass

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Expanding wallet addresses...", total=None)

        def on_progress(update: ExportProgress) -> None:
            label = PHASE_LABELS[update.phase]
            if update.total:
                progress.update(
                    task,
                    description=f"{label}...",
                    completed=update.current,
                    total=update.total,
                )
            else:
                progress.update(task, description=f"{label} ({update.current} found)...", total=None)

        try:
            result = await exporter.run(address, stake_address, options, on_progress=on_progress, cancel=cancel)
        finally:
            await exporter.client.close()

        progress.update(task, description="✓ Export finished", completed=1, total=1)

    return result


@app.command()
def export(
    address: str = typer.Argument(..., help="Wallet payment address"),
    stake_address: str | None = typer.Option(
        None,
        "--stake-address",
        "-s",
        help="Stake address; expands to every wallet address and enables rewards",
    ),
    start: datetime | None = typer.Option(
        None, "--start", help="Earliest date to include (UTC)", formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]
    ),
    end: datetime | None = typer.Option(
        None, "--end", help="Latest date to include (UTC)", formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]
    ),
    rewards: bool = typer.Option(True, "--rewards/--no-rewards", help="Include staking rewards"),
    asset: AssetFilter = typer.Option(AssetFilter.ALL, "--asset", "-a", help="Asset filter"),
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-o", help="Directory for the CSV file"),
    network: str = typer.Option("mainnet", "--network", "-n", help="Cardano network"),
    project_id: str | None = typer.Option(
        None, "--project-id", help="Blockfrost project id (default: $BLOCKFROST_PROJECT_ID)"
    ),
    format: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--format",
        "-f",
        help="Summary output format",
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Export the transaction history of a wallet to a CSV file.

    Examples:

        # Single address, everything
        cardano-tx-export export addr1...

        # Whole wallet with rewards for 2024
        cardano-tx-export export addr1... --stake-address stake1... --start 2024-01-01 --end 2024-12-31

        # ADA movements only, no rewards
        cardano-tx-export export addr1... --no-rewards --asset ada_only
    """
    _configure_logging(debug)

    project_id = project_id or os.getenv("BLOCKFROST_PROJECT_ID")
    if not project_id:
        console.print("[bold red]Missing Blockfrost project id[/bold red]")
        console.print("[yellow]Set BLOCKFROST_PROJECT_ID or pass --project-id[/yellow]")
        raise typer.Exit(code=1)

    if network not in get_all_supported_networks():
        console.print(f"[bold red]Unsupported network:[/bold red] {network}")
        raise typer.Exit(code=1)

    options = ExportOptions(
        start_date=start,
        end_date=_end_of_day(end),
        include_staking_rewards=rewards,
        asset_filter=asset,
    )

    console.print(f"\n[bold cyan]Exporting transactions for:[/bold cyan] {address}")
    if debug:
        console.print(f"[dim]Options: {options.model_dump_json()}[/dim]")

    exporter = TransactionExporter(_build_client(network, project_id), get_exporter_settings(network))

    try:
        result = asyncio.run(_run_export(exporter, address, stake_address, options))
    except KeyboardInterrupt:
        console.print("\n[yellow]Export cancelled[/yellow]")
        raise typer.Exit(130)

    if not result.success:
        console.print(f"[bold red]Error:[/bold red] {result.error}")
        if result.warning:
            console.print(f"[yellow]Warning:[/yellow] {result.warning}")
        raise typer.Exit(1)

    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / result.filename
    output_path.write_text(result.content or "", encoding="utf-8")

    if format == OutputFormat.JSON:
        _output_json(result, output_path)
    else:
        _output_table(result, output_path)


@app.command()
def list_networks() -> None:
    """List all supported networks."""
    table = Table(title="Supported Networks", show_header=True, header_style="bold magenta")
    table.add_column("Network", style="cyan")
    table.add_column("Indexer", style="green")
    table.add_column("Epoch Length", style="yellow", justify="right")

    for network in get_all_supported_networks():
        config = get_network_config(network)
        table.add_row(network, config["base_url"], f"{config['genesis']['epoch_length_seconds']}s")

    console.print(table)


def _output_table(result: ExportResult, output_path: Path) -> None:
    """Output export summary as rich table."""
    table = Table(show_header=False, box=None)
    table.add_column("Label", style="bold")
    table.add_column("Value", style="bold green")

    table.add_row("File:", str(output_path))
    table.add_row("Transactions:", str(result.transaction_count))
    if result.date_range:
        table.add_row("From:", result.date_range.start.astimezone(UTC).strftime("%Y-%m-%d %H:%M UTC"))
        table.add_row("To:", result.date_range.end.astimezone(UTC).strftime("%Y-%m-%d %H:%M UTC"))

    console.print("\n")
    console.print(table)
    if result.warning:
        console.print(f"\n[yellow]Warning:[/yellow] {result.warning}")
    console.print("\n")


def _output_json(result: ExportResult, output_path: Path) -> None:
    """Output export summary as JSON."""
    data = result.model_dump(mode="json", exclude={"content"})
    data["path"] = str(output_path)
    console.print(json.dumps(data, indent=2), soft_wrap=True)


if __name__ == "__main__":
    app()
