#!/usr/bin/env python3
"""Run the diffhelper API under uvicorn."""

import argparse

import uvicorn


def main():
    parser = argparse.ArgumentParser(description="Serve the diffhelper API locally")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Restart when sources change")
    parser.add_argument(
        "--log-level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
    )
    args = parser.parse_args()

    uvicorn.run(
        "diffhelper.api.app:app",
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        reload=args.reload,
        reload_dirs=["src"] if args.reload else None,
    )


if __name__ == "__main__":
    main()
