"""Allow ``python -m automater``."""

from automater.cli import run

run()
