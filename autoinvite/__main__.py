"""
Entry point for running autoinvite as a module: python -m autoinvite
"""

from autoinvite.cli.commands import app

if __name__ == "__main__":
    app()
