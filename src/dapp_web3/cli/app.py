"""CLI for dapp-web3-utils - balances, network info and unit conversion from the terminal."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dapp_web3.config import Web3Config, config_from_env, load_config
from dapp_web3.wallet.context import EthereumContext
from dapp_web3.wallet.networks import NETWORKS, etherscan_format, get_network
from dapp_web3.wallet.provider import Web3Utilities
from dapp_web3.wallet.units import from_decimal, to_decimal

app = typer.Typer(
    name="dapp-web3",
    help="Ethereum wallet helpers: balances, Etherscan links and unit conversion.",
    no_args_is_help=True,
)
console = Console()

_config_path: Optional[Path] = None


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        console.print(f"dapp-web3-utils {version('dapp-web3-utils')}")
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML config file (defaults to WEB3_* environment variables)",
        envvar="DAPP_WEB3_CONFIG",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Ethereum wallet helpers: balances, Etherscan links and unit conversion."""
    global _config_path
    _config_path = config
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


def _load() -> Web3Config:
    if _config_path is not None:
        return load_config(_config_path)
    return config_from_env()


def _utilities() -> Web3Utilities:
    config = _load()
    return Web3Utilities(EthereumContext.from_config(config), config)


# ------------------------------------------------------------------
# Balances
# ------------------------------------------------------------------


@app.command("balance")
def balance(
    account: str = typer.Option(None, "--account", "-a", help="Address to check (default: configured account)"),
    unit: str = typer.Option("ether", "--unit", "-u", help="Denomination (wei, gwei, ether, ...)"),
):
    """Show the ETH balance of an account."""
    try:
        utils = _utilities()
        result = asyncio.run(utils.get_balance(account, unit))
    except Exception as e:
        console.print(f"[red]Could not fetch balance: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[bold]{account or utils.context.account}:[/bold] {result} {unit}")


@app.command("token-balance")
def token_balance(
    token: str = typer.Argument(help="ERC20 token contract address"),
    account: str = typer.Option(None, "--account", "-a", help="Holder address (default: configured account)"),
):
    """Show an ERC20 token balance, scaled by the token's decimals."""
    try:
        utils = _utilities()
        result = asyncio.run(utils.get_erc20_balance(token, account))
    except Exception as e:
        console.print(f"[red]Could not fetch token balance: {e}[/red]")
        raise typer.Exit(1)
    console.print(f"[bold]{token}:[/bold] {result}")


# ------------------------------------------------------------------
# Networks
# ------------------------------------------------------------------


@app.command("network")
def network(
    network_id: str = typer.Argument(None, help="Network id (default: configured network)"),
):
    """Show network details, or list all known networks."""
    if network_id is None and _config_path is None and not os.environ.get("WEB3_NETWORK_ID"):
        table = Table(title="Known Networks")
        table.add_column("Id", justify="right", style="cyan")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Explorer", style="dim")
        for nid, net in NETWORKS.items():
            table.add_row(str(nid), net.name, net.type, f"https://{net.etherscan_prefix}etherscan.io")
        console.print(table)
        return

    try:
        net = get_network(network_id if network_id is not None else _load().network_id)
    except (ValueError, OSError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(Panel(
        f"Name: [cyan]{net.name}[/cyan]\n"
        f"Type: {net.type}\n"
        f"Explorer: https://{net.etherscan_prefix}etherscan.io",
        title=f"Network {net.network_id}",
    ))


@app.command("etherscan")
def etherscan(
    kind: str = typer.Argument(help="One of: transaction, address, token"),
    data: str = typer.Argument(help="Transaction hash or address"),
    network_id: str = typer.Option(None, "--network", "-n", help="Network id (default: configured network)"),
):
    """Print the Etherscan URL for a transaction, address or token."""
    try:
        url = etherscan_format(kind, data, network_id if network_id is not None else _load().network_id)
    except (ValueError, OSError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(url, soft_wrap=True)


# ------------------------------------------------------------------
# Unit conversion
# ------------------------------------------------------------------


@app.command("to-decimal")
def to_decimal_cmd(
    number: str = typer.Argument(help="Raw integer amount, e.g. 1500000"),
    decimals: int = typer.Argument(18, help="Token decimals"),
):
    """Convert a raw integer amount to a decimal string."""
    console.print(to_decimal(number, decimals))


@app.command("from-decimal")
def from_decimal_cmd(
    number: str = typer.Argument(help="Decimal amount, e.g. 1.5"),
    decimals: int = typer.Argument(18, help="Token decimals"),
):
    """Convert a decimal string to a raw integer amount."""
    try:
        console.print(from_decimal(number, decimals))
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
