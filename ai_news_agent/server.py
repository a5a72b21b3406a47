#!/usr/bin/env python3
"""AI News Agent API server.

Usage:
    ai-news-agent-server [--host HOST] [--port PORT] [--reload]

Host and port default to ``HOST`` and ``PORT`` from the environment
(``127.0.0.1`` and ``3000``).
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000
APP_FACTORY = "ai_news_agent.api.app:create_app"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Serve the AI News Agent HTTP API")
    parser.add_argument("--host", default=os.environ.get("HOST", DEFAULT_HOST), help="Interface to bind")
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.environ.get("PORT", DEFAULT_PORT)),
        help=f"Port to listen on (default: {DEFAULT_PORT})",
    )
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development)")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    return parser


def main(argv: Optional[List[str]] = None):
    """Start uvicorn with the API app factory."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn is not installed. Install it with: pip install uvicorn")
        sys.exit(1)

    base_url = f"http://{args.host}:{args.port}"
    print(f"AI News Agent API listening on {base_url}")
    print(f"  POST {base_url}/api/generate")
    print(f"  POST {base_url}/api/regenerate-post")
    print(f"  GET  {base_url}/api/health")

    # One worker: the seen store is a single local file
    uvicorn.run(
        APP_FACTORY,
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1,
        log_level=args.log_level,
    )


if __name__ == "__main__":
    main()
