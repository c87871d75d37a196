"""Entry point for `python -m launcher_release`."""

from launcher_release.cli import app

if __name__ == "__main__":
    app()
