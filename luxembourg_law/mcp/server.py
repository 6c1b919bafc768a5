"""luxembourg_law.mcp.server

MCP (Model Context Protocol) server for the Luxembourg Law Service.

- stdio transport
- tools come from `luxembourg_law.tools.registry` (shared with the HTTP API)
- each call runs the synchronous tool in a worker thread with its own session
"""

from __future__ import annotations

import json
from typing import Any

import anyio
import mcp.types as types
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.stdio import stdio_server

from luxembourg_law.config.settings import settings
from luxembourg_law.repository.db import SessionLocal
from luxembourg_law.tools.registry import TOOLS
from luxembourg_law.tools.registry import call_tool as run_tool
from luxembourg_law.utils.logger import get_logger

logger = get_logger(__name__)


SERVER_NAME = "luxembourg-law-mcp"


server = Server(
    SERVER_NAME,
    version=settings.service_version,
    instructions=(
        "Luxembourg legislation tools backed by Legilux open data. "
        "Use search_legislation to find provisions, get_provision for article text, "
        "and validate_citation to confirm a citation exists before relying on it."
    ),
)


@server.list_tools()
async def list_tools(_: types.ListToolsRequest | None) -> types.ListToolsResult:
    return types.ListToolsResult(
        tools=[
            types.Tool(
                name=tool["name"],
                description=tool["description"],
                inputSchema=tool["inputSchema"],
            )
            for tool in TOOLS
        ]
    )


def _text_and_structured(payload: dict[str, Any]):
    text = json.dumps(payload, ensure_ascii=False, indent=2, default=str)
    return ([types.TextContent(type="text", text=text)], payload)


def _run_in_session(name: str, args: dict[str, Any]) -> dict[str, Any]:
    with SessionLocal() as db:
        return run_tool(db, name, args)


@server.call_tool()
async def call_tool(name: str, arguments: dict | None):
    args = arguments or {}

    try:
        payload = await anyio.to_thread.run_sync(_run_in_session, name, args)
    except ValueError as e:
        logger.info(f"Tool {name} rejected input: {e}")
        raise
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}")
        raise

    return _text_and_structured(payload)


async def _run() -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(
                notification_options=NotificationOptions(
                    prompts_changed=False,
                    resources_changed=False,
                    tools_changed=False,
                ),
                experimental_capabilities={},
            ),
        )


def main() -> None:
    anyio.run(_run)


if __name__ == "__main__":
    main()
