"""Bank statement import for the José personal finance app."""

__version__ = "0.1.0"
