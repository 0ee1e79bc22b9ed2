"""permgov - permission resolution and governance engine."""

__version__ = "0.1.0"
