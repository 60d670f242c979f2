"""Allow running as python -m nexiastat."""

from .cli import main

main()
