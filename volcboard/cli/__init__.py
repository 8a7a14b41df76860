"""VolcBoard command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``volcboard`` script).
"""

from volcboard.cli.main import cli

__all__ = ["cli"]
