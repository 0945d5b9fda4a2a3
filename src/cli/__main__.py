"""Allow ``python -m src.cli`` execution."""

from src.cli.studio import main

main()
