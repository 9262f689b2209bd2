"""Run the chat relay with uvicorn.

Usage:
    python -m scripts.serve --reload
"""

import argparse

import uvicorn

from app.core.config import settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the live chat relay server")
    parser.add_argument("--host", default=settings.server.host, help="Bind host")
    parser.add_argument(
        "--port", type=int, default=settings.server.port, help="Bind port"
    )
    parser.add_argument("--reload", action="store_true", help="Reload on changes")
    args = parser.parse_args()

    uvicorn.run(
        "app.main:asgi_app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":
    main()
