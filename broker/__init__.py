"""HTTP adapter for the pact broker core."""

__version__ = "0.1.0"
