"""
Entry point for running chronicler as a module: python -m chronicler
"""

from chronicler.cli.commands import app

if __name__ == "__main__":
    app()
