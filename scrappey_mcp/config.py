"""Load scrappey-mcp configuration from scrappey.toml, the environment and .env."""
from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomllib  # type: ignore[import]
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore[no-redef]

DEFAULT_API_URL = "https://publisher.scrappey.com/api/v1"
DEFAULT_TIMEOUT = 180.0  # seconds; browser actions on slow pages take minutes
TRANSPORTS = ("stdio", "sse")


@dataclass
class Config:
    api_key: str
    project_root: Path
    api_url: str = DEFAULT_API_URL
    timeout: float = DEFAULT_TIMEOUT
    render_markdown: bool = True  # False = return raw backend JSON
    transport: str = "stdio"
    host: str = "127.0.0.1"  # sse only
    port: int = 8765  # sse only
    log_level: str = "INFO"

    @property
    def sse_url(self) -> str:
        return f"http://{self.host}:{self.port}/sse"


def _load_env_file(path: Path) -> dict[str, str]:
    """Parse a simple KEY=VALUE env file (no quoting, # comments).

    A missing file yields an empty mapping.
    """
    env: dict[str, str] = {}
    if not path.exists():
        return env
    for line in path.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            k, v = line.split("=", 1)
            env[k.strip()] = v.strip()
    return env


def load(project_root: Path | None = None) -> Config:
    """Load config from scrappey.toml + SCRAPPEY_API_KEY.

    The API key is the only required setting. It comes from the
    SCRAPPEY_API_KEY environment variable, or from a .env file next to
    scrappey.toml when the variable is unset.
    """
    if project_root is None:
        project_root = Path.cwd()

    toml_path = project_root / "scrappey.toml"
    data: dict = {}
    if toml_path.exists():
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)

    scrappey = data.get("scrappey", {})
    server = data.get("server", {})
    logging_ = data.get("logging", {})

    # Explicit env var wins over .env, same as dotenv's non-override default.
    api_key = os.environ.get("SCRAPPEY_API_KEY", "").strip()
    if not api_key:
        api_key = _load_env_file(project_root / ".env").get("SCRAPPEY_API_KEY", "")
    if not api_key:
        raise ValueError(
            "SCRAPPEY_API_KEY environment variable is required. "
            "Export it or add SCRAPPEY_API_KEY=... to .env."
        )

    api_url = os.environ.get("SCRAPPEY_API_URL") or scrappey.get("api_url", DEFAULT_API_URL)

    timeout = float(scrappey.get("timeout", DEFAULT_TIMEOUT))
    if timeout <= 0:
        raise ValueError("scrappey.toml [scrappey] timeout must be > 0 seconds.")

    render_markdown = scrappey.get("markdown", True)
    if not isinstance(render_markdown, bool):
        raise ValueError(
            f"scrappey.toml [scrappey] markdown must be true or false, got {render_markdown!r}."
        )

    transport = server.get("transport", "stdio")
    if transport not in TRANSPORTS:
        raise ValueError(
            f"scrappey.toml [server] transport must be one of {', '.join(TRANSPORTS)}, "
            f"got {transport!r}."
        )

    port = server.get("port", 8765)
    if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
        raise ValueError(
            f"scrappey.toml [server] port must be an integer in 1-65535, got {port!r}."
        )

    log.debug("Config loaded from %s (transport=%s)", toml_path, transport)

    return Config(
        api_key=api_key,
        project_root=project_root.resolve(),
        api_url=api_url,
        timeout=timeout,
        render_markdown=render_markdown,
        transport=transport,
        host=server.get("host", "127.0.0.1"),
        port=port,
        log_level=str(logging_.get("level", "INFO")).upper(),
    )
