"""
Gateway Server Entry Point

Standalone server for running the API relay gateway.
"""

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

import structlog
import uvicorn

from src.config import get_settings
from src.proxy.config import ProxyConfig
from src.proxy.gateway import create_proxy_app

logger = structlog.get_logger(__name__)


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured logging for the process."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=True),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def run_proxy_server(config: ProxyConfig) -> None:
    """
    Run the gateway server.

    Invalid configuration and bind failures end the process.

    Args:
        config: Gateway configuration
    """
    try:
        app = create_proxy_app(config=config)
    except ValueError:
        # create_proxy_app has logged the configuration errors
        sys.exit(1)

    logger.info(
        "starting_api_relay_gateway_server",
        host=config.listen_host,
        port=config.listen_port,
        routes=sorted(config.routes.prefixes),
    )

    uvicorn.run(
        app,
        host=config.listen_host,
        port=config.listen_port,
        log_level=config.log_level.lower(),
        access_log=False,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="API Relay Gateway",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run on the default port (2233)
  python main.py

  # Run on a custom port
  python main.py 8080
        """,
    )

    parser.add_argument(
        "port",
        nargs="?",
        type=int,
        default=None,
        help="Port to listen on (default: GATEWAY_PORT or 2233)",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: GATEWAY_HOST or 0.0.0.0)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (default: GATEWAY_LOG_LEVEL or info)",
    )

    return parser


def load_config(argv: Optional[List[str]] = None) -> ProxyConfig:
    """Build configuration from settings, with command line overrides."""
    args = build_parser().parse_args(argv)
    config = ProxyConfig.from_settings(get_settings())

    if args.port is not None:
        config = replace(config, listen_port=args.port)
    if args.host is not None:
        config = replace(config, listen_host=args.host)
    if args.log_level is not None:
        config = replace(config, log_level=args.log_level.upper())

    return config


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the gateway server."""
    config = load_config(argv)
    configure_logging(config.log_level)
    run_proxy_server(config)


if __name__ == "__main__":
    main()
