"""MCP server exposing Scrappey sessions, requests and browser actions as tools.

Transport: stdio by default (the MCP client forks this process), or SSE over
HTTP on a loopback port, where clients connect to http://127.0.0.1:<port>/sse.

Tool arguments that map to Scrappey request fields keep the wire spelling
(postData, browserActions, ...) so callers can reuse the backend's docs.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Literal

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from scrappey_mcp.dispatcher import Dispatcher, ToolResult

log = logging.getLogger(__name__)

HttpCommand = Literal[
    "request.get", "request.post", "request.put", "request.delete", "request.patch"
]
FilterField = Literal[
    "response",
    "innerText",
    "includeLinks",
    "includeImages",
    "userAgent",
    "statusCode",
    "cookies",
    "cookieString",
    "responseHeaders",
    "requestHeaders",
    "ipInfo",
]
CaptchaType = Literal["turnstile", "recaptcha", "hcaptcha", "perimeterx", "custom"]

INSTRUCTIONS = """\
Drive a remote Scrappey browser. Create a session first, pass its id to every
other tool, and destroy it when done. Page replies are markdown in which links
and buttons end with <!-- selector: ... --> hints; use those selectors in
click/type actions.
"""


def _reply(result: ToolResult) -> list:
    """Unwrap a dispatcher result for FastMCP.

    Failures are raised as ToolError, which the SDK reports to the client as
    an isError=true result rather than a protocol fault.
    """
    if result.is_error:
        raise ToolError(result.text.removeprefix("Error: "))
    return list(result.content)


def create_server(dispatcher: Dispatcher) -> FastMCP:
    """Create and configure the FastMCP server instance."""
    mcp = FastMCP("scrappey", instructions=INSTRUCTIONS)
    registry = dispatcher.registry

    @mcp.tool()
    async def scrappey_create_session(
        proxy: str = "",
        whitelistedDomains: list[str] | None = None,
        browser: list[dict[str, Any]] | None = None,
    ):
        """Create a new browser session in Scrappey.

        Args:
            proxy: Use with http://user:pass@ip:port; leave blank for the
                built-in proxy, which is fine for most use cases.
            whitelistedDomains: Only these domains may be loaded in the session.
            browser: Browser constraints, e.g. [{"name": "firefox", "minVersion": 120}].

        Returns:
            "Created session: <id>".
        """
        return _reply(
            await dispatcher.create_session(
                proxy or None, whitelisted_domains=whitelistedDomains, browser=browser
            )
        )

    @mcp.tool()
    async def scrappey_destroy_session(session: str):
        """Destroy an existing browser session in Scrappey."""
        return _reply(await dispatcher.destroy_session(session))

    @mcp.tool()
    async def scrappey_request(
        cmd: HttpCommand,
        url: str,
        session: str,
        postData: str | None = None,
        customHeaders: dict[str, str] | None = None,
        filter: list[FilterField] | None = None,
        screenshot: bool = False,
    ):
        """Send an HTTP request through a Scrappey session.

        Args:
            cmd: HTTP verb command.
            url: Target URL.
            session: Session id from scrappey_create_session.
            postData: Request body for post/put/patch.
            customHeaders: Extra request headers.
            filter: Only include these response fields. "response" is the full
                HTML; "innerText" is just the text.
            screenshot: Attach a PNG screenshot of the final page.

        Returns:
            JSON {"markdown": ...} of the page, with selector hints.
        """
        return _reply(
            await dispatcher.request(
                cmd,
                url,
                session,
                post_data=postData,
                custom_headers=customHeaders,
                filter=filter,
                screenshot=screenshot,
            )
        )

    @mcp.tool()
    async def scrappey_browser_action(
        session: str,
        browserActions: list[dict[str, Any]],
        url: str | None = None,
        keepSamePage: bool | None = None,
        cmd: HttpCommand = "request.get",
        filter: list[FilterField] | None = None,
        screenshot: bool = False,
    ):
        """Execute an ordered sequence of browser actions in a session.

        Each action is an object with a required "type" (click, hover, type,
        scroll, wait, goto, execute_js, wait_for_selector, solve_captcha, or any
        other type the backend accepts) and the fields that type uses:
        "cssSelector" (#id, .class, tag...), "text" (type), "code" (execute_js),
        "wait" (seconds), "url" (goto), "timeout" (wait_for_selector, ms),
        "captcha" (solve_captcha).

        Args:
            session: Session id from scrappey_create_session.
            browserActions: Actions, run in order.
            url: Page to load before the actions.
            keepSamePage: Stay on the current page instead of loading url.
            cmd: HTTP verb used to load url.
            filter: Only include these response fields.
            screenshot: Attach a PNG screenshot of the final page.
        """
        return _reply(
            await dispatcher.browser_action(
                session,
                browserActions,
                url=url,
                keep_same_page=keepSamePage,
                cmd=cmd,
                filter=filter,
                screenshot=screenshot,
            )
        )

    @mcp.tool()
    async def scrappey_navigate(session: str, url: str, screenshot: bool = False):
        """Load a URL in the session and return the page as annotated markdown."""
        return _reply(await dispatcher.navigate(session, url, screenshot))

    @mcp.tool()
    async def scrappey_click(
        session: str, selector: str, url: str | None = None, screenshot: bool = False
    ):
        """Click the element matching a CSS selector.

        Without url the click happens on the session's current page.
        """
        return _reply(await dispatcher.click(session, selector, url, screenshot))

    @mcp.tool()
    async def scrappey_type(
        session: str,
        selector: str,
        text: str,
        url: str | None = None,
        screenshot: bool = False,
    ):
        """Type text into the element matching a CSS selector."""
        return _reply(await dispatcher.type_text(session, selector, text, url, screenshot))

    @mcp.tool()
    async def scrappey_execute_js(
        session: str, code: str, url: str | None = None, screenshot: bool = False
    ):
        """Run JavaScript in the session's page."""
        return _reply(await dispatcher.execute_js(session, code, url, screenshot))

    @mcp.tool()
    async def scrappey_wait(
        session: str,
        seconds: float | None = None,
        selector: str | None = None,
        timeout: float | None = None,
        url: str | None = None,
    ):
        """Wait a fixed number of seconds, or until a selector appears.

        Args:
            session: Session id.
            seconds: Fixed delay. Takes precedence over selector.
            selector: CSS selector to wait for.
            timeout: Max wait for selector, in milliseconds. Required with selector.
            url: Page to load first; omit to stay on the current page.
        """
        return _reply(await dispatcher.wait(session, seconds, selector, timeout, url))

    @mcp.tool()
    async def scrappey_solve_captcha(
        session: str,
        captcha: CaptchaType,
        url: str | None = None,
        selector: str | None = None,
        screenshot: bool = False,
    ):
        """Solve a captcha on the page (turnstile, recaptcha, hcaptcha, ...)."""
        return _reply(
            await dispatcher.solve_captcha(session, captcha, url, selector, screenshot)
        )

    @mcp.resource(
        "session://active",
        name="active_sessions",
        description="Session ids created by this server and not yet destroyed",
        mime_type="text/plain",
    )
    def active_sessions() -> str:
        ids = registry.list()
        if not ids:
            return "No active sessions"
        return "\n".join(ids)

    @mcp.resource(
        "session://{session_id}",
        name="session",
        description="One active session",
        mime_type="text/plain",
    )
    def session_resource(session_id: str) -> str:
        if not registry.contains(session_id):
            raise ValueError(f"Resource not found: session://{session_id}")
        return f"Active session ID: {session_id}"

    return mcp


async def run_server(
    mcp: FastMCP,
    transport: str = "stdio",
    host: str = "127.0.0.1",
    port: int = 8765,
    ready_event: asyncio.Event | None = None,
) -> None:
    """Run the MCP server (blocks until the client disconnects or cancelled).

    For SSE, *ready_event* is set once the port is bound and accepting
    connections. For stdio it is set immediately.
    """
    if transport == "stdio":
        if ready_event is not None:
            ready_event.set()
        await mcp.run_stdio_async()
        return

    import uvicorn

    app = mcp.sse_app()
    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level="warning",
        access_log=False,
    )
    server = uvicorn.Server(config)

    # Replicate server.serve() with a readiness signal after startup.
    config.load()
    server.lifespan = config.lifespan_class(config)
    await server.startup()
    if ready_event is not None:
        ready_event.set()
    log.info("Scrappey MCP listening on http://%s:%d/sse", host, port)
    if server.should_exit:
        return
    await server.main_loop()
    await server.shutdown()
