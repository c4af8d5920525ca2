"""
Command line entry point.

Usage:
    project-central [--mode sse|stdio] [--host HOST] [--port PORT] [--log-level LEVEL]

Flags override the environment (see config.ServerConfig). A .env file in the
working directory is loaded first.
"""

import argparse
import logging
import os
import sys

import anyio
import uvicorn
from dotenv import load_dotenv

from .config import MODES, ServerConfig

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str):
    # stderr only: stdout carries the protocol in stdio mode
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="project-central", description="Project Central MCP Server")
    parser.add_argument("--mode", choices=MODES, default=None, help="Transport (default: sse)")
    parser.add_argument("--host", default=None, help="Server host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Server port (default: 3000)")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")
    return parser


def apply_overrides(args: argparse.Namespace):
    """Write command line flags through to the environment."""
    if args.mode:
        os.environ["MCP_MODE"] = args.mode
    if args.host:
        os.environ["PC_HOST"] = args.host
    if args.port:
        os.environ["PORT"] = str(args.port)
    if args.log_level:
        os.environ["PC_LOG_LEVEL"] = args.log_level.upper()


def main(argv: list[str] | None = None):
    load_dotenv()
    args = build_parser().parse_args(argv)
    apply_overrides(args)

    config = ServerConfig.from_env()
    configure_logging(config.log_level)

    if config.mode == "stdio":
        from .server import run_stdio

        try:
            anyio.run(run_stdio, config)
        except KeyboardInterrupt:
            logger.info("Server stopped by user")
        return

    from .mcp_http import create_app

    logger.info(f"Project Central MCP Server running on http://{config.host}:{config.port}")
    try:
        uvicorn.run(
            create_app(config),
            host=config.host,
            port=config.port,
            log_level=config.log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except Exception as e:
        logger.error(f"Error starting server: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
