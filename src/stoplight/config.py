"""Configuration and environment handling for the Stoplight connector."""

import os
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv

if TYPE_CHECKING:
    from stoplight.connectors.base import RequestPolicy

DEFAULT_BASE_URL = "https://services.leadconnectorhq.com"


class Config:
    """Central configuration object."""

    def __init__(self):
        # Load .env file if it exists
        env_path = Path(__file__).parent.parent.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        # Get project root
        self.project_root = Path(__file__).parent.parent.parent

        # Upstream API
        self.base_url: str = os.getenv("STOPLIGHT_BASE_URL", DEFAULT_BASE_URL).rstrip("/")
        self.connect_timeout: float = float(os.getenv("STOPLIGHT_CONNECT_TIMEOUT", "10"))
        self.read_timeout: float = float(os.getenv("STOPLIGHT_READ_TIMEOUT", "30"))
        self.user_agent: str = os.getenv("STOPLIGHT_USER_AGENT", "stoplight-connector/1.0")

        # Exports written by the JSON file loader
        self.output_dir: Path = Path(os.getenv("STOPLIGHT_OUTPUT_DIR", "data/exports"))
        if not self.output_dir.is_absolute():
            self.output_dir = self.project_root / self.output_dir

        # Logging
        self.log_level: str = os.getenv("STOPLIGHT_LOG_LEVEL", "INFO")

    def request_policy(self) -> "RequestPolicy":
        """Build the RequestPolicy matching the configured timeouts."""
        from stoplight.connectors.base import RequestPolicy

        return RequestPolicy(
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            user_agent=self.user_agent,
        )


# Global config instance
config = Config()
