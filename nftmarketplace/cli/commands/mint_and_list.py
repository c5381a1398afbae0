"""``nftmarketplace mint-and-list`` — mint a token, approve and list it."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from nftmarketplace.config import MarketplaceConfig
from nftmarketplace.core.deployment import deploy, mint_and_list
from nftmarketplace.core.errors import AssetRegistryError, MarketplaceError
from nftmarketplace.core.event_journal import EventJournal
from nftmarketplace.core.units import format_ether, parse_ether

console = Console()


def mint_and_list_cmd(
    price: str = typer.Option(
        None, "--price", "-p", help="Listing price in ETH (defaults to config)."
    ),
    journal_db: str = typer.Option(
        None, "--journal", "-j", help="Path to the journal SQLite database."
    ),
    salt: str = typer.Option(
        None, "--salt", help="Address derivation seed (random if omitted)."
    ),
) -> None:
    """Mint a token to the deployer, approve the marketplace, and list it."""
    config = MarketplaceConfig()
    try:
        price_wei = parse_ether(price) if price else config.listing_price_wei
    except ValueError as exc:
        console.print(f"[bold red]Invalid amount:[/bold red] {exc}")
        raise typer.Exit(code=1)

    journal = EventJournal(Path(journal_db) if journal_db else config.journal_path)
    deployment = deploy(config, salt=salt, journal=journal)
    seller = deployment.account("deployer")

    console.print("Minting.....")
    console.print("Approving NftMarketplace....")
    console.print("Listing NFT....")
    try:
        key = mint_and_list(deployment, seller, price_wei)
    except (MarketplaceError, AssetRegistryError) as exc:
        console.print(f"[bold red]{type(exc).__name__}:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(
        f"[bold green]Listed[/bold green] token {key.token_id} of {key.registry} "
        f"at {format_ether(price_wei)} ETH on market {deployment.marketplace.address}"
    )
