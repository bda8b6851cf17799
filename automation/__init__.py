"""Release automation: build and release command dispatcher."""

__version__ = "0.1.0"
