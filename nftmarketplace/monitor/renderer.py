"""Rich terminal renderer for marketplace state and the event journal.

Color scheme
------------
- green     : item_listed
- yellow    : item_canceled
- cyan      : item_bought
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from nftmarketplace.core.units import format_ether
from nftmarketplace.models.events import MarketEventKind

if TYPE_CHECKING:
    from nftmarketplace.models.assets import AssetKey, Listing
    from nftmarketplace.models.journal import JournalEntry
    from nftmarketplace.monitor.projection import MarketSnapshot


_KIND_LABELS: dict[MarketEventKind, str] = {
    MarketEventKind.ITEM_LISTED: "[green]LISTED[/green]",
    MarketEventKind.ITEM_CANCELED: "[yellow]CANCELED[/yellow]",
    MarketEventKind.ITEM_BOUGHT: "[cyan]BOUGHT[/cyan]",
}


def short_address(address: str) -> str:
    """Abbreviate ``0x`` addresses for table display."""
    if address.startswith("0x") and len(address) > 12:
        return f"{address[:6]}...{address[-4:]}"
    return address


class MarketRenderer:
    """Renders listings, proceeds and journal entries as Rich output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def render_listings(self, listings: Mapping[AssetKey, Listing]) -> Table:
        """Build a table of active listings."""
        table = Table(title="Active Listings", header_style="bold cyan")
        table.add_column("Registry")
        table.add_column("Token", justify="right")
        table.add_column("Seller")
        table.add_column("Price (ETH)", justify="right", style="green")

        for key, listing in listings.items():
            table.add_row(
                short_address(key.registry),
                str(key.token_id),
                short_address(listing.seller),
                format_ether(listing.price),
            )
        if not listings:
            table.add_row("[dim]-[/dim]", "", "[dim]nothing listed[/dim]", "")
        return table

    def render_balances(
        self, rows: Mapping[str, tuple[str, int, int]]
    ) -> Table:
        """Build a table of ``name -> (address, proceeds, wallet)`` rows."""
        table = Table(title="Accounts", header_style="bold cyan")
        table.add_column("Account")
        table.add_column("Address")
        table.add_column("Proceeds (ETH)", justify="right", style="magenta")
        table.add_column("Wallet (ETH)", justify="right")

        for name, (address, proceeds, wallet) in rows.items():
            table.add_row(
                name,
                short_address(address),
                format_ether(proceeds),
                format_ether(wallet),
            )
        return table

    def render_journal(self, entries: list[JournalEntry]) -> Table:
        """Build a table of journal entries, oldest first."""
        table = Table(title="Event Journal", header_style="bold cyan", expand=True)
        table.add_column("#", style="dim", justify="right")
        table.add_column("Event", justify="center")
        table.add_column("Token", justify="right")
        table.add_column("Party")
        table.add_column("Price (ETH)", justify="right")
        table.add_column("Hash", style="dim")
        table.add_column("Recorded", style="dim")

        for i, entry in enumerate(entries):
            party = entry.event.get("seller") or entry.event.get("buyer") or ""
            price = entry.event.get("price")
            table.add_row(
                str(i),
                _KIND_LABELS.get(entry.event_kind, entry.event_kind.value),
                str(entry.token_id),
                short_address(party) if party else "[dim]-[/dim]",
                format_ether(price) if price is not None else "[dim]-[/dim]",
                entry.entry_hash[:12],
                entry.recorded_at.strftime("%H:%M:%S"),
            )
        return table

    def render_snapshot(self, snapshot: MarketSnapshot) -> Panel:
        """Render a projected ``MarketSnapshot`` as a Panel."""
        listings = {p.asset_key: p.listing for p in snapshot.listings}
        chain_status = (
            "[green]valid[/green]" if snapshot.chain_valid else "[bold red]BROKEN[/bold red]"
        )
        summary = "  |  ".join([
            f"[bold]Market:[/bold] {short_address(snapshot.market)}",
            f"[bold]Active:[/bold] {snapshot.active_count}",
            f"[bold]Events:[/bold] {snapshot.event_count}",
            f"[bold]Volume:[/bold] {format_ether(snapshot.total_volume)} ETH",
            f"[bold]Chain:[/bold] {chain_status}",
        ])
        return Panel(
            Group(self.render_listings(listings), Text(""), Text.from_markup(summary)),
            title="[bold]NFT Marketplace[/bold]",
            subtitle=f"Last updated: {snapshot.last_updated.strftime('%Y-%m-%d %H:%M:%S UTC')}",
            border_style="blue",
            padding=(1, 2),
        )

    # ------------------------------------------------------------------
    # Standalone print
    # ------------------------------------------------------------------

    def print_snapshot(self, snapshot: MarketSnapshot) -> None:
        self.console.print(self.render_snapshot(snapshot))

    def print_chain_verification(self, market: str, valid: bool) -> None:
        """Print a chain verification result."""
        if valid:
            self.console.print(
                f"[green]Journal chain for market {market} is valid.[/green]"
            )
        else:
            self.console.print(
                f"[bold red]Journal chain for market {market} is BROKEN![/bold red]"
            )
