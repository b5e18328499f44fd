"""Life OS signal intelligence pipeline."""

__version__ = "0.4.0"
