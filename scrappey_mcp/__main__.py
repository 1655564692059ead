"""Entry point: python -m scrappey_mcp"""
from __future__ import annotations

import asyncio
import logging
import sys

from scrappey_mcp.client import ScrappeyClient
from scrappey_mcp.config import Config, load
from scrappey_mcp.dispatcher import Dispatcher
from scrappey_mcp.server import create_server, run_server
from scrappey_mcp.sessions import SessionRegistry


async def serve(cfg: Config) -> None:
    """Build the client/registry/dispatcher stack and serve until done."""
    registry = SessionRegistry()
    async with ScrappeyClient(cfg.api_key, cfg.api_url, cfg.timeout) as client:
        dispatcher = Dispatcher(client, registry, render_markdown=cfg.render_markdown)
        mcp = create_server(dispatcher)
        try:
            await run_server(mcp, cfg.transport, cfg.host, cfg.port)
        finally:
            if len(registry):
                logging.getLogger("scrappey_mcp").warning(
                    "Exiting with %d session(s) still open: %s",
                    len(registry), ", ".join(registry.list()),
                )


def main() -> None:
    # Logs go to stderr; stdout belongs to the stdio transport.
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    log = logging.getLogger("scrappey_mcp")

    try:
        cfg = load()
    except ValueError as exc:
        log.error("Config error: %s", exc)
        sys.exit(1)

    logging.getLogger().setLevel(cfg.log_level)

    try:
        asyncio.run(serve(cfg))
    except KeyboardInterrupt:
        pass
    except Exception:
        log.exception("Scrappey MCP server crashed")
        sys.exit(1)
    finally:
        log.info("Scrappey MCP server stopped.")


if __name__ == "__main__":
    main()
