"""Command line entry point, ``python -m filegate`` or ``filegate``."""

import argparse
from collections.abc import Sequence

import uvicorn

from filegate import create_app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filegate",
        description="Serve the Filegate file manager API with uvicorn.",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Environment file read before the process environment.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Load the configuration and serve the app until interrupted."""
    args = build_parser().parse_args(argv)
    uvicorn.run(create_app(args.env_file), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
