"""Journal inspection commands: ``events``, ``listings`` and ``verify``.

All three are read-only; they open the journal database and never touch a
live marketplace.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from nftmarketplace.config import MarketplaceConfig
from nftmarketplace.core.event_journal import EventJournal, JournalIntegrityError
from nftmarketplace.monitor.projection import ListingProjection
from nftmarketplace.monitor.renderer import MarketRenderer

console = Console()


def _open_journal(journal_db: str | None) -> EventJournal:
    db_path = Path(journal_db) if journal_db else MarketplaceConfig().journal_path
    if not db_path.exists():
        console.print(f"[bold red]Journal not found:[/bold red] {db_path}")
        raise typer.Exit(code=1)
    return EventJournal(db_path)


def _markets(journal: EventJournal, market: str | None) -> list[str]:
    markets = [market] if market else journal.get_all_markets()
    if not markets:
        console.print("[dim]The journal is empty.[/dim]")
    return markets


def events_cmd(
    market: str = typer.Option(
        None, "--market", "-m", help="Marketplace address (all markets if omitted)."
    ),
    journal_db: str = typer.Option(
        None, "--journal", "-j", help="Path to the journal SQLite database."
    ),
) -> None:
    """Show every journaled event, per marketplace."""
    journal = _open_journal(journal_db)
    renderer = MarketRenderer(console=console)
    for address in _markets(journal, market):
        console.print(f"\n[bold]Market[/bold] {address}")
        console.print(renderer.render_journal(journal.get_entries(address)))


def listings_cmd(
    market: str = typer.Option(
        None, "--market", "-m", help="Marketplace address (all markets if omitted)."
    ),
    journal_db: str = typer.Option(
        None, "--journal", "-j", help="Path to the journal SQLite database."
    ),
) -> None:
    """Show the listings an indexer would consider open."""
    journal = _open_journal(journal_db)
    projection = ListingProjection(journal)
    renderer = MarketRenderer(console=console)
    for address in _markets(journal, market):
        renderer.print_snapshot(projection.snapshot(address))


def verify_cmd(
    market: str = typer.Option(
        None, "--market", "-m", help="Marketplace address (all markets if omitted)."
    ),
    journal_db: str = typer.Option(
        None, "--journal", "-j", help="Path to the journal SQLite database."
    ),
) -> None:
    """Verify the hash chain of each marketplace in the journal."""
    journal = _open_journal(journal_db)
    renderer = MarketRenderer(console=console)
    broken = False
    for address in _markets(journal, market):
        try:
            valid = journal.verify_chain(address)
        except JournalIntegrityError as exc:
            console.print(f"[red]{exc}[/red]")
            valid = False
        renderer.print_chain_verification(address, valid)
        broken = broken or not valid

    if broken:
        raise typer.Exit(code=1)
