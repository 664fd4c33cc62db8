"""arcshell CLI — Typer-based command-line interface.

Provides the ``arcshell`` command with subcommands for listing profiles,
fetching toolchains, printing or entering a composed environment, pinning
digests, and checking the host.

All human-facing output uses Rich; machine-facing output (shell hooks,
JSON, digests) is written plainly to stdout.
"""
