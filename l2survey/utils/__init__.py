"""
Utility functions for the L2 survey walkthrough.
"""

from .helpers import (
    ensure_directory,
    save_json,
    format_percentage,
    format_pvalue,
    get_timestamp,
)

__all__ = [
    "ensure_directory",
    "save_json",
    "format_percentage",
    "format_pvalue",
    "get_timestamp",
]
