"""Scrappey command client: one POST per command, JSON in, JSON out.

Docs: https://wiki.scrappey.com/getting-started
"""
from __future__ import annotations

import asyncio
import json
import logging

import aiohttp

from scrappey_mcp.config import DEFAULT_API_URL, DEFAULT_TIMEOUT
from scrappey_mcp.errors import ArgumentError, RemoteCommandError

log = logging.getLogger(__name__)

HTTP_COMMANDS = (
    "request.get",
    "request.post",
    "request.put",
    "request.delete",
    "request.patch",
)
SESSION_COMMANDS = ("sessions.create", "sessions.destroy", "sessions.list")
COMMANDS = frozenset(SESSION_COMMANDS + HTTP_COMMANDS)


class ScrappeyClient:
    """Async Scrappey API client.

    Performs no retries: a failed command is reported once as
    RemoteCommandError and the caller decides what to do next.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._api_key = api_key
        self._api_url = api_url
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> ScrappeyClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session; the next send opens a fresh one."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def send(self, cmd: str, params: dict | None = None) -> dict:
        """Send one command and return the decoded response payload.

        Args:
            cmd: Command verb, one of COMMANDS (e.g. "sessions.create").
            params: Command fields, merged into the JSON body next to "cmd".

        Raises:
            ArgumentError: cmd is empty or not a known command (nothing sent).
            RemoteCommandError: transport, status, decode or backend failure.
        """
        if not cmd:
            raise ArgumentError("cmd is required")
        if cmd not in COMMANDS:
            raise ArgumentError(
                f"unknown command {cmd!r}; expected one of {', '.join(sorted(COMMANDS))}"
            )

        body = {"cmd": cmd, **(params or {})}
        log.debug("Sending %s (fields: %s)", cmd, ", ".join(sorted(params or {})))

        try:
            async with self._get_session().post(
                self._api_url,
                params={"key": self._api_key},
                json=body,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
                timeout=self._timeout,
            ) as resp:
                if resp.status >= 400:
                    text = await resp.text(errors="replace")
                    raise RemoteCommandError(
                        f"Scrappey API error: HTTP {resp.status}: {text[:200]}"
                    )
                data = await resp.json(content_type=None)
        except asyncio.TimeoutError:
            log.warning("%s timed out after %ss", cmd, self._timeout.total)
            raise RemoteCommandError(
                f"Scrappey API error: timed out after {self._timeout.total:g}s"
            ) from None
        except aiohttp.ClientError as exc:
            log.warning("%s failed: %s", cmd, exc)
            raise RemoteCommandError(f"Scrappey API error: {exc}") from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            log.warning("%s returned undecodable body: %s", cmd, exc)
            raise RemoteCommandError(f"Scrappey API error: invalid JSON response ({exc})") from exc

        self._check_error(data)
        return data

    @staticmethod
    def _check_error(data: object) -> None:
        if not isinstance(data, dict):
            raise RemoteCommandError(
                f"Scrappey API error: expected a JSON object, got {type(data).__name__}"
            )
        if data.get("data") == "error":
            raise RemoteCommandError(
                f"Scrappey API error: {data.get('error') or 'unknown error'}"
            )
