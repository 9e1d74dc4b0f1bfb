"""
Application configuration for the performance graph viewer.

The configuration is an explicit structure handed to the data provider, the
viewer and the FastAPI app factory. Values come from (in order of priority):
1. Command line flags (main.py)
2. PERFGRAPH_* environment variables
3. Built-in defaults
"""

import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

DEFAULT_PORT = 3001
DEFAULT_HOST = "127.0.0.1"
DEFAULT_SOURCE = "performance.json"
DATA_ENDPOINT = "/api/performance-data"

_ENV_PREFIX = "PERFGRAPH_"
_TRUE_VALUES = {"1", "true", "yes", "on"}


def _default_dist_path() -> Path:
    return Path(__file__).resolve().parent.parent / "dist"


@dataclass
class AppConfig:
    """Runtime settings for the provider, the viewer and the HTTP server."""
    source_path: Path = field(default_factory=lambda: Path.cwd() / DEFAULT_SOURCE)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    base_url: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    dist_path: Path = field(default_factory=_default_dist_path)
    log_level: str = "INFO"
    # None means no timeout on the network read
    request_timeout: Optional[float] = None
    # IANA zone name used to format timestamps; None uses the local zone
    display_timezone: Optional[str] = None
    keep_document_on_error: bool = True

    def __post_init__(self):
        self.source_path = Path(self.source_path)
        self.dist_path = Path(self.dist_path)
        if not self.base_url:
            self.base_url = f"http://localhost:{self.port}"
        self.base_url = self.base_url.rstrip("/")

    @property
    def data_url(self) -> str:
        """Full URL of the performance data endpoint."""
        return f"{self.base_url}{DATA_ENDPOINT}"

    def with_overrides(self, **overrides: Any) -> "AppConfig":
        """Return a copy with the non-None overrides applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        # A derived base URL follows the port
        if (
            "port" in values
            and "base_url" not in values
            and self.base_url == f"http://localhost:{self.port}"
        ):
            values["base_url"] = f"http://localhost:{values['port']}"
        return replace(self, **values)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["source_path"] = str(self.source_path)
        data["dist_path"] = str(self.dist_path)
        return data

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        """Build a config from PERFGRAPH_* environment variables."""
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(_ENV_PREFIX + name)
            return value if value not in (None, "") else None

        kwargs: Dict[str, Any] = {}
        if get("SOURCE"):
            kwargs["source_path"] = Path(get("SOURCE")).expanduser()
        if get("HOST"):
            kwargs["host"] = get("HOST")
        if get("PORT"):
            kwargs["port"] = int(get("PORT"))
        if get("BASE_URL"):
            kwargs["base_url"] = get("BASE_URL")
        if get("CORS_ORIGINS"):
            kwargs["cors_origins"] = [
                origin.strip() for origin in get("CORS_ORIGINS").split(",") if origin.strip()
            ]
        if get("DIST"):
            kwargs["dist_path"] = Path(get("DIST")).expanduser()
        if get("LOG_LEVEL"):
            kwargs["log_level"] = get("LOG_LEVEL")
        if get("REQUEST_TIMEOUT"):
            kwargs["request_timeout"] = float(get("REQUEST_TIMEOUT"))
        if get("TIMEZONE"):
            kwargs["display_timezone"] = get("TIMEZONE")
        if get("KEEP_ON_ERROR"):
            kwargs["keep_document_on_error"] = get("KEEP_ON_ERROR").lower() in _TRUE_VALUES

        return cls(**kwargs)
