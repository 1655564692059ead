"""Per-operation parameter records and their wire encoding.

Each record validates its required and enumerated fields on construction
(raising ArgumentError) and flattens to the JSON fields Scrappey expects via
to_params(). Optional fields the caller did not supply are left out of the
wire body entirely rather than sent as null.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from scrappey_mcp.client import HTTP_COMMANDS
from scrappey_mcp.errors import ArgumentError

CAPTCHA_TYPES = ("turnstile", "recaptcha", "hcaptcha", "perimeterx", "custom")

# Response fields Scrappey can restrict its reply to
FILTER_FIELDS = (
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
)

# python attribute -> wire key, for BrowserAction fields whose names differ
_ACTION_WIRE_KEYS = {
    "type": "type",
    "css_selector": "cssSelector",
    "text": "text",
    "code": "code",
    "wait": "wait",
    "url": "url",
    "timeout": "timeout",
    "captcha": "captcha",
}


def require(value: Any, name: str) -> None:
    if value is None or value == "":
        raise ArgumentError(f"{name} is required")


def check_choice(value: str, choices: Iterable[str], name: str) -> None:
    choices = tuple(choices)
    if value not in choices:
        raise ArgumentError(
            f"{name} must be one of {', '.join(choices)}, got {value!r}"
        )


def _check_filter(values: list[str] | None) -> None:
    for value in values or ():
        check_choice(value, FILTER_FIELDS, "filter")


@dataclass
class BrowserAction:
    """One step of a browser-action sequence.

    Only ``type`` is checked. Whether the remaining fields make sense for
    that type is left to the backend, which reports ill-formed steps itself.
    Keys this class does not know are kept in ``extra`` and sent unchanged.
    """

    type: str
    css_selector: str | None = None
    text: str | None = None
    code: str | None = None
    wait: float | None = None
    url: str | None = None
    timeout: float | None = None
    captcha: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        require(self.type, "action type")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> BrowserAction:
        """Build from a wire-shaped mapping such as {"type": "click", "cssSelector": "#go"}."""
        if not isinstance(data, Mapping):
            raise ArgumentError(f"browser action must be an object, got {type(data).__name__}")
        remaining = dict(data)
        kwargs = {}
        for attr, key in _ACTION_WIRE_KEYS.items():
            if key in remaining:
                kwargs[attr] = remaining.pop(key)
        if "type" not in kwargs:
            raise ArgumentError("action type is required")
        return cls(**kwargs, extra=remaining)

    def to_wire(self) -> dict[str, Any]:
        wire = {}
        for attr, key in _ACTION_WIRE_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                wire[key] = value
        wire.update(self.extra)
        return wire


@dataclass
class CreateSessionParams:
    proxy: str | None = None  # http://user:pass@ip:port; blank = built-in proxy
    whitelisted_domains: list[str] | None = None
    browser: list[dict[str, Any]] | None = None  # e.g. [{"name": "firefox"}]

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {}
        if self.proxy:
            params["proxy"] = self.proxy
        if self.whitelisted_domains:
            params["whitelistedDomains"] = list(self.whitelisted_domains)
        if self.browser:
            params["browser"] = list(self.browser)
        return params


@dataclass
class DestroySessionParams:
    session: str

    def __post_init__(self) -> None:
        require(self.session, "session")

    def to_params(self) -> dict[str, Any]:
        return {"session": self.session}


@dataclass
class RequestParams:
    """A single HTTP-verb request (request.get, request.post, ...)."""

    cmd: str
    url: str
    session: str
    post_data: str | None = None
    custom_headers: dict[str, str] | None = None
    filter: list[str] | None = None
    screenshot: bool = False

    def __post_init__(self) -> None:
        require(self.cmd, "cmd")
        check_choice(self.cmd, HTTP_COMMANDS, "cmd")
        require(self.url, "url")
        require(self.session, "session")
        _check_filter(self.filter)

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"url": self.url, "session": self.session}
        if self.post_data is not None:
            params["postData"] = self.post_data
        if self.custom_headers:
            params["customHeaders"] = dict(self.custom_headers)
        if self.filter:
            params["filter"] = list(self.filter)
        if self.screenshot:
            params["screenshot"] = True
        return params


@dataclass
class BrowserActionParams:
    """An ordered browser-action sequence run inside one session.

    The actions are sent in the given order; dependencies between steps are
    not checked here.
    """

    session: str
    actions: list[BrowserAction]
    cmd: str = "request.get"
    url: str | None = None
    keep_same_page: bool | None = None
    filter: list[str] | None = None
    screenshot: bool = False

    def __post_init__(self) -> None:
        require(self.session, "session")
        if not self.actions:
            raise ArgumentError("browserActions must contain at least one action")
        check_choice(self.cmd, HTTP_COMMANDS, "cmd")
        _check_filter(self.filter)

    @classmethod
    def from_dicts(
        cls, session: str, actions: list[Mapping[str, Any]] | None, **kwargs: Any
    ) -> BrowserActionParams:
        parsed = [BrowserAction.from_dict(a) for a in actions or ()]
        return cls(session=session, actions=parsed, **kwargs)

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "session": self.session,
            "browserActions": [a.to_wire() for a in self.actions],
        }
        if self.url:
            params["url"] = self.url
        if self.keep_same_page is not None:
            params["keepSamePage"] = self.keep_same_page
        if self.filter:
            params["filter"] = list(self.filter)
        if self.screenshot:
            params["screenshot"] = True
        return params
