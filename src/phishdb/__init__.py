"""In-memory PhishTank URL lookup service."""

__version__ = "0.1.0"
