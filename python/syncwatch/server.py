"""
syncwatch MCP server - FastMCP implementation

Exposes the daemon status to operators:
- get_status: point query of the current snapshot
- watch_status: polls the snapshot and streams each one to the client
- set_max_events: resize the recent-event ring
- ping: daemon version

CRITICAL: In stdio mode stdout is the JSON-RPC channel - NEVER use print()!
"""

import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Optional

from fastmcp import Context, FastMCP

from syncwatch import __version__
from syncwatch.config import ConfigError, SyncConfig, load_config
from syncwatch.lifecycle import Daemon, daemon_lifespan
from syncwatch.logging_config import parse_level, setup_logging
from syncwatch.status_service import WATCH_INTERVAL, status_response, watch_status

logger = logging.getLogger(__name__)


def create_server(config: SyncConfig, daemon: Optional[Daemon] = None) -> FastMCP:
    """
    Build the FastMCP server around a Daemon.

    The daemon starts with the server lifespan and stops when the server
    shuts down.
    """
    daemon = daemon or Daemon(config)

    @asynccontextmanager
    async def lifespan(_app):
        async with daemon_lifespan(daemon):
            yield

    mcp = FastMCP("syncwatch", lifespan=lifespan)

    async def get_status() -> dict[str, Any]:
        """Current sync state, message, last event and recent events."""
        return status_response(daemon.status)

    async def watch_status_tool(
        ctx: Context,
        updates: int = 5,
        interval: float = WATCH_INTERVAL,
    ) -> dict[str, Any]:
        """
        Stream status snapshots as log messages, one per interval.

        Stops after `updates` snapshots or when the client goes away,
        and returns the last snapshot sent.
        """
        last: dict[str, Any] = {}
        sent = 0
        stream = watch_status(daemon.status, interval=interval)
        try:
            async for snapshot in stream:
                last = snapshot
                await ctx.info(json.dumps(snapshot))
                sent += 1
                if sent >= updates:
                    break
        finally:
            await stream.aclose()
        return last

    async def set_max_events(max_events: int) -> dict[str, Any]:
        """Resize the recent-event ring (values <= 0 are ignored)."""
        daemon.status.set_max_events(max_events)
        return {"max_events": daemon.status.max_events}

    async def ping() -> dict[str, str]:
        """Daemon version."""
        return {"version": __version__}

    mcp.tool(name="get_status")(get_status)
    mcp.tool(name="watch_status")(watch_status_tool)
    mcp.tool(name="set_max_events")(set_max_events)
    mcp.tool(name="ping")(ping)

    return mcp


def _configure(config_path: Optional[str], log_level: Optional[str], console: bool) -> SyncConfig:
    try:
        config = load_config(
            config_path=Path(config_path) if config_path else None,
            log_level=log_level,
        )
    except ConfigError as e:
        logging.getLogger("syncwatch").error(f"{e}")
        raise SystemExit(2) from e

    setup_logging(
        log_file=config.log_file_path,
        level=parse_level(config.log_level),
        backup_count=config.log_backup_count,
        console=console,
    )
    logger.info(f"Sync root: {config.sync_root}")
    return config


def main():
    """stdio entry point (file logging only)."""
    import argparse

    parser = argparse.ArgumentParser(description="syncwatch daemon (MCP over stdio)")
    parser.add_argument("--config", default=None, help="Path to a YAML/JSON config file")
    parser.add_argument("--log-level", default=None, help="Logging level (debug, info, warning, error)")
    args = parser.parse_args()

    config = _configure(args.config, args.log_level, console=False)
    mcp = create_server(config)
    try:
        mcp.run(show_banner=False)
    except BrokenPipeError:
        import sys

        sys.stderr.write("Client disconnected. Shutting down.\n")
        sys.exit(0)


def main_http_cli():
    """
    HTTP entry point.

    Usage:
        syncwatch-http --host 127.0.0.1 --port 8765

    Or via environment variables:
        SYNCWATCH_HOST=0.0.0.0 SYNCWATCH_PORT=8765 syncwatch-http
    """
    import argparse
    import os

    parser = argparse.ArgumentParser(description="syncwatch daemon (MCP over HTTP)")
    parser.add_argument("--config", default=None, help="Path to a YAML/JSON config file")
    parser.add_argument("--log-level", default=None, help="Logging level (debug, info, warning, error)")
    parser.add_argument("--host", default=None, help="Host to bind to (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: 8765)")
    args = parser.parse_args()

    host = args.host or os.environ.get("SYNCWATCH_HOST", "127.0.0.1")
    port = args.port or int(os.environ.get("SYNCWATCH_PORT", "8765"))

    config = _configure(args.config, args.log_level, console=True)
    mcp = create_server(config)
    logger.info(f"Listening on http://{host}:{port}/mcp")
    try:
        mcp.run(transport="http", host=host, port=port)
    except KeyboardInterrupt:
        logger.info("Shutting down syncwatch HTTP server...")


if __name__ == "__main__":
    main()
