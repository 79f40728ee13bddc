"""
config.py - Configuration model for slskarr
"""

from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field
from rich.console import Console
import sys

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

console = Console()


class SlskdConfig(BaseModel):
    """Connection settings for the slskd daemon."""

    host: str = "localhost"
    port: int = 5030
    use_ssl: bool = False
    url_base: str = ""
    api_key: str = ""
    timeout: int = Field(default=30, description="Total timeout in seconds for a single HTTP call")
    max_attempts: int = Field(
        default=3,
        description="Attempts for idempotent GET calls on transient transport failures",
    )

    @property
    def base_url(self) -> str:
        scheme = "https" if self.use_ssl else "http"
        url_base = self.url_base.strip("/")
        root = f"{scheme}://{self.host}:{self.port}"
        return f"{root}/{url_base}" if url_base else root


class SearchSettings(BaseModel):
    """Options submitted with every remote search."""

    file_limit: int = 10000
    filter_responses: bool = True
    maximum_peer_queue_length: int = 1000000
    minimum_peer_upload_speed: int = 0
    minimum_response_file_count: int = 1
    response_limit: int = 250
    search_timeout: int = Field(default=15000, description="Server-side search timeout in milliseconds")


class PollingConfig(BaseModel):
    search_interval: float = Field(default=1.0, description="Seconds between search state polls")
    transfer_interval: float = Field(default=0.5, description="Seconds between transfer state polls")
    search_wait_timeout: Optional[float] = Field(
        default=120.0,
        description="Local bound on waiting for a search; the daemon enforces its own timeout",
    )


class SlskarrConfig(BaseModel):
    slskd: SlskdConfig = Field(default_factory=SlskdConfig)
    search: SearchSettings = Field(default_factory=SearchSettings)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    config_path: Optional[Path] = None


def load_config(config_path: Path) -> SlskarrConfig:
    """Load configuration from TOML file"""

    if not config_path.exists():
        console.print(f"[red][ERROR][/red] Configuration file not found: {config_path}")
        console.print("Please create config.toml with your slskd host and API key")
        sys.exit(1)

    try:
        with open(config_path, "rb") as f:
            config_data = tomllib.load(f)

        return SlskarrConfig(
            slskd=SlskdConfig(**config_data.get("slskd", {})),
            search=SearchSettings(**config_data.get("search", {})),
            polling=PollingConfig(**config_data.get("polling", {})),
            config_path=config_path,
        )

    except Exception as e:
        console.print(f"[red][ERROR][/red] Error loading configuration: {e}")
        sys.exit(1)
