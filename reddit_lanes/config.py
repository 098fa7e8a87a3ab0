"""Configuration handling for the multi-lane Reddit client."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv


@dataclass
class ProviderConfig:
    """Remote read API configuration."""

    base_url: str = "https://www.reddit.com"
    user_agent: str = "reddit_lanes/0.1"
    timeout_sec: float = 10.0
    page_size: int = 25
    search_limit: int = 5


@dataclass
class SearchConfig:
    """Search-as-you-type configuration."""

    debounce_ms: int = 300
    min_query_length: int = 2


@dataclass
class CarouselConfig:
    """Carousel windowing configuration."""

    window_size: int = 3
    narrow_breakpoint_px: int = 768


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""

    enable_prometheus: bool = False
    prometheus_port: int = 8000


@dataclass
class Config:
    """Application configuration combining environment variables and YAML config."""

    provider: ProviderConfig = field(default_factory=ProviderConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    carousel: CarouselConfig = field(default_factory=CarouselConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    state_dir: str = "data/state"
    default_subreddits: List[str] = field(default_factory=lambda: ["programming", "javascript"])
    log_file: str = "logs/reddit_lanes.log"

    @classmethod
    def from_files(cls, config_path: str, env_path: Optional[str] = None) -> "Config":
        """
        Load configuration from YAML file and environment variables.

        Args:
            config_path: Path to YAML configuration file
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config instance with merged configuration
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        config = cls()

        config.provider.base_url = os.getenv("REDDIT_LANES_BASE_URL", config.provider.base_url)
        config.provider.user_agent = os.getenv("REDDIT_LANES_USER_AGENT", config.provider.user_agent)
        config.state_dir = os.getenv("REDDIT_LANES_STATE_DIR", config.state_dir)

        if os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as file:
                yaml_config = yaml.safe_load(file)

            if yaml_config:
                sections = {
                    "provider": config.provider,
                    "search": config.search,
                    "carousel": config.carousel,
                    "monitoring": config.monitoring,
                }
                for key, value in yaml_config.items():
                    if key in sections:
                        if isinstance(value, dict):
                            _apply_section(sections[key], value)
                    elif hasattr(config, key):
                        setattr(config, key, value)

        config.provider.base_url = config.provider.base_url.rstrip("/")
        return config

    def validate(self) -> List[str]:
        """
        Validate configuration and return a list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.provider.base_url.startswith(("http://", "https://")):
            errors.append("provider.base_url must be an http(s) URL")
        if not self.provider.user_agent:
            errors.append("provider.user_agent must not be empty")
        if self.provider.timeout_sec <= 0:
            errors.append("provider.timeout_sec must be greater than 0")
        if self.provider.page_size <= 0:
            errors.append("provider.page_size must be greater than 0")
        if self.provider.search_limit <= 0:
            errors.append("provider.search_limit must be greater than 0")

        if self.search.debounce_ms < 0:
            errors.append("search.debounce_ms must not be negative")
        if self.search.min_query_length < 1:
            errors.append("search.min_query_length must be at least 1")

        if self.carousel.window_size < 1:
            errors.append("carousel.window_size must be at least 1")

        if not self.state_dir:
            errors.append("state_dir must be specified")
        if len(set(self.default_subreddits)) != len(self.default_subreddits):
            errors.append("default_subreddits must not contain duplicates")

        return errors


def _apply_section(section: Any, values: Dict[str, Any]) -> None:
    for key, value in values.items():
        if hasattr(section, key):
            setattr(section, key, value)
