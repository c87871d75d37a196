"""Multi-target release pipeline for the launcher."""

__version__ = "1.0.0"
