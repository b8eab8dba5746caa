#!/usr/bin/env python
"""Entry point to serve a project folder over the AgentFS HTTP API."""

import argparse
import os

import uvicorn


def main() -> None:
    parser = argparse.ArgumentParser(description="Serve a sandboxed project folder")
    parser.add_argument("--root", help="Project folder (overrides AGENTFS_ROOT)")
    parser.add_argument("--host", help="Bind host (overrides AGENTFS_HOST)")
    parser.add_argument("--port", type=int, help="Bind port (overrides AGENTFS_PORT)")
    parser.add_argument("--strict", action="store_true", help="Reject sloppy patches")
    args = parser.parse_args()

    # settings read the environment on import, so export overrides first
    if args.root:
        os.environ["AGENTFS_ROOT"] = args.root
    if args.host:
        os.environ["AGENTFS_HOST"] = args.host
    if args.port:
        os.environ["AGENTFS_PORT"] = str(args.port)
    if args.strict:
        os.environ["AGENTFS_PATCH_MODE"] = "strict"

    from agentfs.config import settings

    settings.setup_logging()
    uvicorn.run(
        "agentfs.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
