"""Command-line workflows around the Lighthouse storage network."""

__version__ = "0.1.0"
