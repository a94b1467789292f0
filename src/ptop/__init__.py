"""ptop - a minimal terminal process and resource monitor."""

__version__ = "0.1.0"
