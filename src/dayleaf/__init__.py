"""A personal diary with local or cloud persistence."""

__version__ = "0.1.0"
