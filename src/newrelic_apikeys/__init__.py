"""Command-line client for managing New Relic API keys through NerdGraph."""

__version__ = "0.1.0"
