"""CLI module for autoinvite."""
