"""CLI for Safe Sentinel - evaluate and co-sign pending multisig transactions."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from safe_sentinel.errors import SentinelError
from safe_sentinel.models import RiskLevel, Verdict

app = typer.Typer(
    name="safe-sentinel",
    help="Risk-check pending Safe transactions and co-sign the safe ones.",
    no_args_is_help=True,
)
console = Console()

_config_path: Path | None = None

RISK_STYLES: dict[RiskLevel, str] = {
    RiskLevel.NONE: "green",
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
    RiskLevel.CRITICAL: "bold red",
}


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        console.print(f"safe-sentinel {version('safe-sentinel')}")
        raise typer.Exit()


@app.callback()
def main(
    config: Path = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config.yaml (default: .safe-sentinel/config.yaml)",
        envvar="SAFE_SENTINEL_CONFIG",
    ),
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Logging level"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Risk-check pending Safe transactions and co-sign the safe ones."""
    global _config_path
    _config_path = config
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run(coro):
    """Run an async function synchronously."""
    return asyncio.run(coro)


def _load_guardian():
    from safe_sentinel.core.guardian import Guardian

    try:
        return Guardian.load(_config_path)
    except SentinelError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _print_verdict(verdict: Verdict, title: str) -> None:
    table = Table(title=title)
    table.add_column("Check", style="bold")
    table.add_column("Risk")
    table.add_column("Message")
    for name, check in verdict.security_checks.items():
        style = RISK_STYLES[check.risk]
        table.add_row(name, f"[{style}]{check.risk.value}[/{style}]", check.message)
    console.print(table)

    if verdict.safe:
        console.print("[bold green]SAFE[/bold green] - no high or critical findings")
    else:
        console.print("[bold red]UNSAFE[/bold red] - human review required")
    if verdict.ai_analysis:
        console.print(Panel(verdict.ai_analysis, title="AI analysis", border_style="dim"))


# ------------------------------------------------------------------
# init
# ------------------------------------------------------------------


@app.command()
def init(
    chain: str = typer.Option("sepolia", "--chain", help="Chain the Safe lives on"),
    safe_address: str = typer.Option("", "--safe", "-s", help="Default Safe address"),
    provider: str = typer.Option("openai", "--provider", "-p", help="LLM provider (openai or anthropic)"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config"),
):
    """Write a starter configuration file."""
    from safe_sentinel.chain.chains import list_chain_names
    from safe_sentinel.config import (
        ChainConfig,
        LLMConfig,
        LLMProviderConfig,
        SafeServiceConfig,
        SentinelConfig,
        SignerConfig,
        default_config_path,
        save_config,
    )

    if chain not in list_chain_names():
        console.print(f"[red]Unknown chain '{chain}'. Available: {list_chain_names()}[/red]")
        raise typer.Exit(1)
    if provider not in ("openai", "anthropic"):
        console.print(f"[red]Unknown provider '{provider}'.[/red]")
        raise typer.Exit(1)

    path = _config_path or default_config_path()
    if path.exists() and not force:
        console.print(f"[yellow]Config already exists at {path}. Use --force to overwrite.[/yellow]")
        raise typer.Exit(1)

    env_var = "OPENAI_API_KEY" if provider == "openai" else "ANTHROPIC_API_KEY"
    llm = LLMConfig(default_provider=provider)
    setattr(llm, provider, LLMProviderConfig(api_key=f"${{{env_var}}}"))

    config = SentinelConfig(
        llm=llm,
        chain=ChainConfig(name=chain, rpc_url="${RPC_URL}"),
        safe=SafeServiceConfig(default_safe_address=safe_address),
        signer=SignerConfig(private_key="${SIGNER_PRIVATE_KEY}"),
    )
    save_config(config, path)
    console.print(f"[green]Wrote configuration to {path}[/green]")


# ------------------------------------------------------------------
# evaluate
# ------------------------------------------------------------------


@app.command()
def evaluate(
    to: str = typer.Option(None, "--to", help="Destination address"),
    value: str = typer.Option("0", "--value", help="Value in wei"),
    data: str = typer.Option(None, "--data", help="Hex call data"),
    tx_file: Path = typer.Option(None, "--file", "-f", help="JSON file with a transaction-service transaction"),
    no_ai: bool = typer.Option(False, "--no-ai", help="Skip the AI narrative"),
    as_json: bool = typer.Option(False, "--json", help="Print the verdict as JSON"),
):
    """Evaluate a single transaction without signing it."""
    from safe_sentinel.safe.models import PendingTransaction

    if tx_file is not None:
        tx = PendingTransaction.model_validate_json(tx_file.read_text(encoding="utf-8"))
    elif to:
        tx = PendingTransaction(safe_tx_hash="0x" + "0" * 64, to=to, value=value, data=data)
    else:
        console.print("[red]Provide --to or --file.[/red]")
        raise typer.Exit(1)

    guardian = _load_guardian()

    async def _evaluate():
        try:
            await guardian.start(background_refresh=False)
            return await guardian.evaluate_transaction(tx, with_narrative=not no_ai)
        finally:
            await guardian.shutdown()

    try:
        verdict = _run(_evaluate())
    except SentinelError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(verdict.to_dict()))
    else:
        _print_verdict(verdict, title=f"Verdict for transfer to {tx.to}")
    raise typer.Exit(0 if verdict.safe else 2)


# ------------------------------------------------------------------
# process
# ------------------------------------------------------------------


@app.command()
def process(
    safe_address: str = typer.Argument(None, help="Safe address (default: from config)"),
    as_json: bool = typer.Option(False, "--json", help="Print the batch result as JSON"),
):
    """Evaluate the Safe's pending queue and co-sign until the first unsafe transaction."""
    guardian = _load_guardian()

    async def _process():
        try:
            await guardian.start(background_refresh=False)
            return await guardian.process_pending_transactions(safe_address)
        finally:
            await guardian.shutdown()

    try:
        result = _run(_process())
    except (SentinelError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
        raise typer.Exit(0 if result.safe else 2)

    table = Table(title="Pending transactions")
    table.add_column("Safe tx hash", style="dim")
    table.add_column("Highest risk")
    table.add_column("State")
    table.add_column("Error")
    for r in result.transactions_results:
        style = RISK_STYLES[r.verdict.highest_risk]
        table.add_row(
            r.safe_tx_hash[:18] + "...",
            f"[{style}]{r.verdict.highest_risk.value}[/{style}]",
            r.state.value,
            r.error or "",
        )
    console.print(table)

    if result.safe:
        console.print(
            f"[bold green]Batch complete[/bold green]: {len(result.signed)} confirmation(s) submitted"
        )
        raise typer.Exit(0)

    _print_verdict(result.halted_verdict, title="Batch halted at unsafe transaction")
    raise typer.Exit(2)


# ------------------------------------------------------------------
# lookup
# ------------------------------------------------------------------


@app.command()
def lookup(address: str = typer.Argument(help="Address to look up in the reputation lists")):
    """Check an address against the deny/allow lists."""
    guardian = _load_guardian()

    async def _lookup():
        try:
            await guardian.cache.refresh()
        finally:
            await guardian.shutdown()

    try:
        _run(_lookup())
    except SentinelError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    status = guardian.cache.status()
    if guardian.cache.is_denylisted(address):
        console.print(f"[bold red]{address} is denylisted[/bold red]")
    elif guardian.cache.is_allowlisted(address):
        console.print(f"[green]{address} is allowlisted[/green]")
    else:
        console.print(f"{address} is not on either list")
    console.print(
        f"[dim]denylist={status['denylist_size']} allowlist={status['allowlist_size']}[/dim]"
    )


# ------------------------------------------------------------------
# serve
# ------------------------------------------------------------------


@app.command()
def serve(
    port: int = typer.Option(None, "--port", "-p", help="Port to serve on (default: from config)"),
    host: str = typer.Option(None, "--host", help="Host to bind to (default: from config)"),
):
    """Run the HTTP API with periodic reputation refresh."""
    from safe_sentinel.config import default_config_path, load_config
    from safe_sentinel.server import run_server

    path = _config_path or default_config_path()
    try:
        config = load_config(path)
    except SentinelError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    bind_host = host or config.server.host
    bind_port = port or config.server.port
    console.print(f"Starting Safe Sentinel at [bold]http://{bind_host}:{bind_port}[/bold]")
    run_server(host=bind_host, port=bind_port, config_path=path)
