"""Allow ``python -m ccu``."""

from ccu.cli import app

if __name__ == "__main__":
    app()
