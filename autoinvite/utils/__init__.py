"""Utility functions for autoinvite."""

from autoinvite.utils.helpers import ensure_dir, safe_filename

__all__ = ["ensure_dir", "safe_filename"]
