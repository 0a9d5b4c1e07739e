"""Application entry point for the verification API server."""

from scholarcheck.cli import serve
from scholarcheck.utils.config import load_config
from scholarcheck.utils.logger import setup_logging


def main() -> None:
    """Start the API server with the host and port from configuration."""
    config = load_config()
    setup_logging(config.log_level)
    serve(config.api.host, config.api.port)


if __name__ == "__main__":
    main()
