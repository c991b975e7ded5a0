"""gigledger CLI — Typer-based command-line interface.

Provides the ``gigledger`` command with subcommands for browsing the open
marketplace, inspecting an account's projects and statistics, and issuing
create / accept / complete / profile actions against the local ledger.

All output uses Rich for formatted terminal display.
"""
