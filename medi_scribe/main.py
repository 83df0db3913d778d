"""Main entry point for MediScribe."""

import logging
import sys

from medi_scribe.config import get_settings

# Third-party loggers that echo full request URLs at INFO
_CHATTY_LOGGERS = ("httpx", "httpcore", "google_genai", "sqlalchemy.engine")


def setup_logging() -> None:
    """Configure root logging from ``Settings.log_level``."""
    settings = get_settings()
    level = getattr(logging, settings.log_level)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def main():
    """Run the medi-scribe CLI."""
    setup_logging()

    from medi_scribe.cli.commands import app

    app()


if __name__ == "__main__":
    main()
