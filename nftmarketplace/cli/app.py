"""Main Typer application — imports and registers all CLI commands.

Entry point: ``nftmarketplace`` (configured via pyproject.toml scripts).

Commands: demo, mint-and-list, events, listings, verify.
"""

from __future__ import annotations

import logging

import typer

from nftmarketplace.cli.commands.demo import demo_cmd
from nftmarketplace.cli.commands.journal_cmds import events_cmd, listings_cmd, verify_cmd
from nftmarketplace.cli.commands.mint_and_list import mint_and_list_cmd
from nftmarketplace.config import config

app = typer.Typer(
    name="nftmarketplace",
    help="nftmarketplace: fixed-price NFT listing ledger with pull-based payouts.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Logging level (defaults to NFTMARKET_LOG_LEVEL).",
    ),
) -> None:
    """Configure logging before any command runs."""
    level = (log_level or config.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


# Register subcommands
app.command(name="demo", help="Deploy, list, buy and withdraw in one run.")(demo_cmd)
app.command(name="mint-and-list", help="Mint a token, approve and list it.")(mint_and_list_cmd)
app.command(name="events", help="Show the event journal for a marketplace.")(events_cmd)
app.command(name="listings", help="Show listings projected from the journal.")(listings_cmd)
app.command(name="verify", help="Verify journal hash chains.")(verify_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
