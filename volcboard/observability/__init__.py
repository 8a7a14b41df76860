"""Logging setup for VolcBoard."""
