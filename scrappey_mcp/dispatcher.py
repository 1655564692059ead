"""Map MCP tool operations onto Scrappey commands.

Every public coroutine returns a ToolResult. Validation and remote failures
become failure-tagged results instead of exceptions, so one failed tool call
never takes down the others in flight.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from mcp.types import ImageContent, TextContent

from scrappey_mcp import annotate
from scrappey_mcp.client import ScrappeyClient
from scrappey_mcp.errors import ArgumentError, RemoteCommandError, ScrappeyError
from scrappey_mcp.params import (
    CAPTCHA_TYPES,
    BrowserAction,
    BrowserActionParams,
    CreateSessionParams,
    DestroySessionParams,
    RequestParams,
    check_choice,
    require,
)
from scrappey_mcp.sessions import SessionRegistry

log = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Uniform tool reply: content blocks plus a success/failure flag."""

    content: list[TextContent | ImageContent] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def ok(cls, text: str, images: list[str] | None = None) -> ToolResult:
        blocks: list[TextContent | ImageContent] = [TextContent(type="text", text=text)]
        for data in images or ():
            blocks.append(ImageContent(type="image", data=data, mimeType="image/png"))
        return cls(content=blocks)

    @classmethod
    def error(cls, message: str) -> ToolResult:
        return cls(content=[TextContent(type="text", text=f"Error: {message}")], is_error=True)

    @property
    def text(self) -> str:
        """All text blocks joined by newlines."""
        return "\n".join(b.text for b in self.content if isinstance(b, TextContent))


class Dispatcher:
    """Validates tool arguments, sends commands and tracks session lifecycle."""

    def __init__(
        self,
        client: ScrappeyClient,
        registry: SessionRegistry,
        render_markdown: bool = True,
    ):
        self.client = client
        self.registry = registry
        self.render_markdown = render_markdown

    async def _guard(self, op: str, call: Callable[[], Awaitable[ToolResult]]) -> ToolResult:
        try:
            return await call()
        except ArgumentError as exc:
            log.info("%s rejected: %s", op, exc)
            return ToolResult.error(str(exc))
        except ScrappeyError as exc:
            log.warning("%s failed: %s", op, exc)
            return ToolResult.error(str(exc))

    def _result(self, raw: dict) -> ToolResult:
        """Render a request-shaped backend reply (markdown or raw JSON)."""
        if self.render_markdown:
            text = json.dumps(annotate.render(raw), indent=2, ensure_ascii=False)
        else:
            text = json.dumps(raw, indent=2, ensure_ascii=False)
        solution = raw.get("solution") if isinstance(raw, dict) else None
        screenshot = solution.get("screenshot") if isinstance(solution, dict) else None
        images = [screenshot] if isinstance(screenshot, str) and screenshot else None
        return ToolResult.ok(text, images)

    # -- session lifecycle --

    async def create_session(
        self,
        proxy: str | None = None,
        whitelisted_domains: list[str] | None = None,
        browser: list[dict[str, Any]] | None = None,
    ) -> ToolResult:
        """sessions.create; the returned id is recorded only on success."""

        async def call() -> ToolResult:
            params = CreateSessionParams(proxy, whitelisted_domains, browser)
            response = await self.client.send("sessions.create", params.to_params())
            session_id = response.get("session")
            if not session_id:
                raise RemoteCommandError("Scrappey API error: no session id in sessions.create reply")
            self.registry.record(session_id)
            log.info("Session created: %s", session_id)
            return ToolResult.ok(f"Created session: {session_id}")

        return await self._guard("create_session", call)

    async def destroy_session(self, session: str) -> ToolResult:
        """sessions.destroy; the id is forgotten only after the backend confirms."""

        async def call() -> ToolResult:
            params = DestroySessionParams(session)
            await self.client.send("sessions.destroy", params.to_params())
            self.registry.forget(params.session)
            log.info("Session destroyed: %s", params.session)
            return ToolResult.ok(f"Destroyed session: {params.session}")

        return await self._guard("destroy_session", call)

    # -- generic operations --

    async def request(
        self,
        cmd: str,
        url: str,
        session: str,
        post_data: str | None = None,
        custom_headers: dict[str, str] | None = None,
        filter: list[str] | None = None,
        screenshot: bool = False,
    ) -> ToolResult:
        """Send one HTTP-verb request through a session."""

        async def call() -> ToolResult:
            params = RequestParams(
                cmd, url, session, post_data, custom_headers, filter, screenshot
            )
            raw = await self.client.send(params.cmd, params.to_params())
            return self._result(raw)

        return await self._guard("request", call)

    async def browser_action(
        self,
        session: str,
        browser_actions: list[dict[str, Any]] | None,
        url: str | None = None,
        keep_same_page: bool | None = None,
        cmd: str = "request.get",
        filter: list[str] | None = None,
        screenshot: bool = False,
    ) -> ToolResult:
        """Run an ordered list of wire-shaped browser actions in a session."""

        async def call() -> ToolResult:
            params = BrowserActionParams.from_dicts(
                session,
                browser_actions,
                cmd=cmd,
                url=url,
                keep_same_page=keep_same_page,
                filter=filter,
                screenshot=screenshot,
            )
            return await self._run(params)

        return await self._guard("browser_action", call)

    async def _run(self, params: BrowserActionParams) -> ToolResult:
        raw = await self.client.send(params.cmd, params.to_params())
        return self._result(raw)

    async def _single(
        self,
        op: str,
        session: str,
        build: Callable[[], BrowserAction],
        url: str | None,
        screenshot: bool = False,
    ) -> ToolResult:
        """Run exactly one action; without a url it acts on the current page."""

        async def call() -> ToolResult:
            params = BrowserActionParams(
                session=session,
                actions=[build()],
                url=url or None,
                keep_same_page=None if url else True,
                screenshot=screenshot,
            )
            return await self._run(params)

        return await self._guard(op, call)

    # -- single-action shortcuts --

    async def navigate(self, session: str, url: str, screenshot: bool = False) -> ToolResult:
        """Load *url* in the session with a plain request.get."""
        return await self.request("request.get", url, session, screenshot=screenshot)

    async def click(
        self, session: str, selector: str, url: str | None = None, screenshot: bool = False
    ) -> ToolResult:
        def build() -> BrowserAction:
            require(selector, "selector")
            return BrowserAction(type="click", css_selector=selector)

        return await self._single("click", session, build, url, screenshot)

    async def type_text(
        self,
        session: str,
        selector: str,
        text: str,
        url: str | None = None,
        screenshot: bool = False,
    ) -> ToolResult:
        def build() -> BrowserAction:
            require(selector, "selector")
            if text is None:
                raise ArgumentError("text is required")
            return BrowserAction(type="type", css_selector=selector, text=text)

        return await self._single("type", session, build, url, screenshot)

    async def execute_js(
        self, session: str, code: str, url: str | None = None, screenshot: bool = False
    ) -> ToolResult:
        def build() -> BrowserAction:
            require(code, "code")
            return BrowserAction(type="execute_js", code=code)

        return await self._single("execute_js", session, build, url, screenshot)

    async def wait(
        self,
        session: str,
        seconds: float | None = None,
        selector: str | None = None,
        timeout: float | None = None,
        url: str | None = None,
    ) -> ToolResult:
        """Fixed delay when *seconds* is given, else wait for *selector* to appear.

        A selector wait needs *timeout* (milliseconds); it is ignored for fixed
        delays.
        """

        def build() -> BrowserAction:
            if seconds is not None:
                return BrowserAction(type="wait", wait=seconds)
            if selector:
                if timeout is None:
                    raise ArgumentError("timeout is required when waiting for a selector")
                return BrowserAction(
                    type="wait_for_selector", css_selector=selector, timeout=timeout
                )
            raise ArgumentError("wait needs either seconds or selector")

        return await self._single("wait", session, build, url)

    async def solve_captcha(
        self,
        session: str,
        captcha: str,
        url: str | None = None,
        selector: str | None = None,
        screenshot: bool = False,
    ) -> ToolResult:
        def build() -> BrowserAction:
            require(captcha, "captcha")
            check_choice(captcha, CAPTCHA_TYPES, "captcha")
            return BrowserAction(type="solve_captcha", captcha=captcha, css_selector=selector or None)

        return await self._single("solve_captcha", session, build, url, screenshot)
