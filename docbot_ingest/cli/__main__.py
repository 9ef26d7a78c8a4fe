"""Allow ``python -m docbot_ingest.cli`` execution."""

from docbot_ingest.cli.ingest import main

main()
