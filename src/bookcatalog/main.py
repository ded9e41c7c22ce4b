"""Application entry point for the book catalog server."""

from bookcatalog.app import App
from bookcatalog.config import Config
from bookcatalog.logging import setup_logging
from bookcatalog.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
