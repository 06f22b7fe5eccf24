import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from politecrawl.utils.env_loader import load_environment


DEFAULT_USER_AGENT = "politecrawl/1.0"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "config.yaml"

# config.yaml keys that differ from the settings field names
_YAML_ALIASES = {
    "user_agent": "crawler_user_agent",
    "workers": "crawler_workers",
}


class Config(BaseSettings):
    crawler_user_agent: str = DEFAULT_USER_AGENT
    crawler_workers: int = Field(default=5, gt=0)
    max_pages: int = Field(default=100, gt=0)
    crawl_delay_default: float = Field(default=1.0, ge=0)
    connect_timeout: float = Field(default=5.0, gt=0)
    read_timeout: float = Field(default=5.0, gt=0)
    frontier_poll_timeout: float = Field(default=1.0, gt=0)
    max_runtime_seconds: float = Field(default=3600.0, gt=0)
    max_download_bytes: int = Field(default=2_000_000, gt=0)
    max_redirects: int = Field(default=10, ge=0)
    html_only: bool = True

    log_level: str = "INFO"
    log_path: Optional[str] = None
    metrics_port: Optional[int] = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def fetch_timeout(self) -> float:
        """Worst-case duration of a single fetch."""
        return self.connect_timeout + self.read_timeout


def _load_yaml_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}

    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: Optional[Path] = None, **overrides: Any) -> Config:
    """Build the crawler configuration.

    Precedence: ``overrides`` -> environment (.env included) -> config.yaml
    ``crawler`` section -> field defaults.
    """
    load_environment()
    file_data = _load_yaml_config(config_path)
    crawler_settings: Dict[str, Any] = file_data.get("crawler") or {}

    values: Dict[str, Any] = {}
    for key, value in crawler_settings.items():
        field_name = _YAML_ALIASES.get(key, key)
        if field_name not in Config.model_fields:
            continue
        # environment beats the yaml file
        if os.getenv(field_name.upper()) is not None:
            continue
        values[field_name] = value

    values.update({k: v for k, v in overrides.items() if v is not None})
    return Config(**values)
