"""AI-TAP response cache."""

__version__ = "1.0.0"
