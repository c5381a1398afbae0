"""``nftmarketplace demo`` — run a complete sale with sample accounts.

Deploys a fresh marketplace, mints and lists a token as the deployer,
buys it as the player, then withdraws the deployer's proceeds — showing
listings and balances at each step.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel

from nftmarketplace.config import MarketplaceConfig
from nftmarketplace.core.deployment import Deployment, deploy, mint_and_list
from nftmarketplace.core.errors import (
    AssetRegistryError,
    InsufficientFunds,
    MarketplaceError,
)
from nftmarketplace.core.event_journal import EventJournal
from nftmarketplace.core.units import format_ether, parse_ether
from nftmarketplace.monitor.renderer import MarketRenderer

console = Console()


def _print_state(deployment: Deployment, renderer: MarketRenderer) -> None:
    marketplace = deployment.marketplace
    renderer.console.print(renderer.render_listings(marketplace.listings()))
    renderer.console.print(
        renderer.render_balances({
            name: (
                address,
                marketplace.get_proceeds(address),
                deployment.wallets.balance_of(address),
            )
            for name, address in deployment.accounts.items()
        })
    )


def demo_cmd(
    price: str = typer.Option(
        None, "--price", "-p", help="Listing price in ETH (defaults to config)."
    ),
    payment: str = typer.Option(
        None, "--payment", help="Amount the buyer pays in ETH (defaults to the price)."
    ),
    journal_db: str = typer.Option(
        None, "--journal", "-j", help="Path to the journal SQLite database."
    ),
    salt: str = typer.Option(
        None, "--salt", help="Address derivation seed (random if omitted)."
    ),
) -> None:
    """Run a complete list → buy → withdraw sale with sample data."""
    config = MarketplaceConfig()
    try:
        price_wei = parse_ether(price) if price else config.listing_price_wei
        payment_wei = parse_ether(payment) if payment else price_wei
    except ValueError as exc:
        console.print(f"[bold red]Invalid amount:[/bold red] {exc}")
        raise typer.Exit(code=1)

    journal = EventJournal(Path(journal_db) if journal_db else config.journal_path)
    deployment = deploy(config, salt=salt, journal=journal)
    renderer = MarketRenderer(console=console)
    seller = deployment.account("deployer")
    buyer = deployment.account("player")

    console.print()
    console.print(
        Panel(
            "[bold]NFT Marketplace Demo[/bold]\n\n"
            f"Marketplace: {deployment.marketplace.address}\n"
            f"Collection:  {deployment.basic_nft.name} ({deployment.basic_nft.address})",
            border_style="cyan",
            padding=(1, 2),
        )
    )

    try:
        console.print(f"\n[cyan]>>> Listing at {format_ether(price_wei)} ETH[/cyan]")
        key = mint_and_list(deployment, seller, price_wei)
        _print_state(deployment, renderer)

        console.print(f"\n[cyan]>>> Buying with {format_ether(payment_wei)} ETH[/cyan]")
        deployment.marketplace.buy_item(key, caller=buyer, payment=payment_wei)
        _print_state(deployment, renderer)

        console.print("\n[cyan]>>> Withdrawing proceeds[/cyan]")
        amount = deployment.marketplace.withdraw_proceeds(caller=seller)
        _print_state(deployment, renderer)
    except (MarketplaceError, AssetRegistryError, InsufficientFunds) as exc:
        console.print(f"[bold red]{type(exc).__name__}:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print()
    console.print(
        Panel(
            "\n".join([
                "[bold green]Demo Complete![/bold green]",
                "",
                f"[bold]Token:[/bold]     {key}",
                f"[bold]Owner:[/bold]     {deployment.basic_nft.owner_of(key.token_id)}",
                f"[bold]Withdrawn:[/bold] {format_ether(amount)} ETH",
                f"[bold]Events:[/bold]    {len(deployment.event_bus.history)}",
                f"[bold]Journal:[/bold]   {journal.db_path}",
            ]),
            title="[bold]Demo Summary[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
