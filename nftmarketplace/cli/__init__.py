"""nftmarketplace CLI — Typer-based command-line interface.

Provides the ``nftmarketplace`` command with subcommands for running a
demo sale, minting and listing, and inspecting the event journal.

All output uses Rich for formatted terminal display.
"""
