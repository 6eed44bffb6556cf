"""Editor configuration."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from setlist_planner.drag import ActivationConstraint
from setlist_planner.gateway import (
    DEFAULT_STORE_DIR,
    DEFAULT_TIMEOUT,
    HttpGateway,
    JsonFileGateway,
    SetlistGateway,
)

STORE_ENV = "SETLIST_PLANNER_STORE"
API_ENV = "SETLIST_PLANNER_API"


@dataclass
class EditorConfig:
    """Configuration for the editor and its storage backend."""

    # Storage (api_url wins over store_dir when set)
    store_dir: Path = DEFAULT_STORE_DIR
    api_url: str | None = None
    http_timeout: int = DEFAULT_TIMEOUT
    refresh_interval: float = 0.0  # seconds between background reloads, 0 disables

    # Drag activation
    activation: ActivationConstraint = field(default_factory=ActivationConstraint)

    # Display
    show_all_songs: bool = False

    @classmethod
    def from_env(cls, store_dir: str | None = None, api_url: str | None = None) -> "EditorConfig":
        """Build a config from explicit values, falling back to the environment."""
        config = cls()
        store = store_dir or os.environ.get(STORE_ENV)
        if store:
            config.store_dir = Path(store).expanduser()
        config.api_url = api_url or os.environ.get(API_ENV) or None
        return config

    def make_gateway(self) -> SetlistGateway:
        if self.api_url:
            return HttpGateway(self.api_url, timeout=self.http_timeout)
        return JsonFileGateway(self.store_dir)
