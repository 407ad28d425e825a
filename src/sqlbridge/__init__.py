"""sqlbridge - multi-dialect SQL generation and execution core."""

from sqlbridge.__about__ import __version__

__all__ = ["__version__"]
