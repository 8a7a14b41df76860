"""VolcBoard: a read-only dashboard backend for the Volcano batch scheduler."""

__version__ = "0.1.0"
