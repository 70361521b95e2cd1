"""
autoinvite - A Matrix bot that accepts invites and relays mentions
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("autoinvite-bot")
except PackageNotFoundError:
    __version__ = "0.1.0"

__logo__ = "📨"
