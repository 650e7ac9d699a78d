"""Allow running octap with ``python -m octap``."""

from octap.cli import main

main()
