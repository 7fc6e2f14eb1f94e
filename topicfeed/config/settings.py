"""
Configuration management for topicfeed
Loads environment variables and provides centralized settings
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional
from dotenv import load_dotenv
import logging

# Load environment variables
env_path = Path(__file__).parent.parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

@dataclass
class APIConfig:
    """Optional per-source credentials"""
    finnhub_key: str = ""
    github_token: str = ""

@dataclass
class HTTPConfig:
    """Outbound HTTP settings shared by every source"""
    timeout_seconds: float = 15.0
    user_agent: str = "topicfeed/0.1"

@dataclass
class CacheConfig:
    """Cache housekeeping and persistence"""
    cleanup_max_age_minutes: int = 24 * 60
    cleanup_interval_minutes: int = 30
    persist: bool = True
    snapshot_file: Optional[Path] = None

@dataclass
class SystemConfig:
    """System-level configuration"""
    log_level: str = "INFO"
    default_topics: List[str] = field(
        default_factory=lambda: ["crypto", "investing", "ai", "vibe_coding"]
    )

    # Paths
    project_root: Path = field(default_factory=lambda: Path(__file__).parent.parent.parent)
    data_dir: Path = field(init=False)
    cache_dir: Path = field(init=False)
    logs_dir: Path = field(init=False)

    def __post_init__(self):
        self.data_dir = self.project_root / "data"
        self.cache_dir = self.data_dir / "cache"
        self.logs_dir = self.project_root / "logs"

@dataclass
class Config:
    """Main configuration container"""
    api: APIConfig
    http: HTTPConfig
    cache: CacheConfig
    system: SystemConfig

    # Runtime overrides
    _overrides: Dict[str, Any] = field(default_factory=dict)

    def override(self, key: str, value: Any):
        """Override a configuration value at runtime"""
        self._overrides[key] = value

    def get(self, key: str, default=None):
        """Get configuration value with override support"""
        if key in self._overrides:
            return self._overrides[key]

        # Navigate nested attributes
        parts = key.split('.')
        obj = self
        for part in parts:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                return default
        return obj

    @property
    def snapshot_path(self) -> Path:
        """Where the cache snapshot lives on disk"""
        return self.cache.snapshot_file or self.system.cache_dir / "snapshot.json"

def _split_list(raw: str) -> List[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]

# Singleton instance
_config_instance: Optional[Config] = None

def get_config() -> Config:
    """Get or create the configuration singleton"""
    global _config_instance

    if _config_instance is None:
        # Load from environment
        api_config = APIConfig(
            finnhub_key=os.getenv("FINNHUB_API_KEY") or os.getenv("FINNHUB_API", ""),
            github_token=os.getenv("GITHUB_TOKEN", "")
        )

        http_config = HTTPConfig(
            timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "15")),
            user_agent=os.getenv("HTTP_USER_AGENT", "topicfeed/0.1")
        )

        snapshot = os.getenv("CACHE_SNAPSHOT_FILE")
        cache_config = CacheConfig(
            cleanup_max_age_minutes=int(os.getenv("CACHE_CLEANUP_MAX_AGE_MINUTES", str(24 * 60))),
            cleanup_interval_minutes=int(os.getenv("CACHE_CLEANUP_INTERVAL_MINUTES", "30")),
            persist=os.getenv("CACHE_PERSIST", "true").lower() == "true",
            snapshot_file=Path(snapshot) if snapshot else None
        )

        system_config = SystemConfig(log_level=os.getenv("LOG_LEVEL", "INFO"))
        topics = os.getenv("TOPICS")
        if topics:
            system_config.default_topics = _split_list(topics)

        _config_instance = Config(
            api=api_config,
            http=http_config,
            cache=cache_config,
            system=system_config
        )

        # Optional credentials only degrade the sources that need them
        if not api_config.finnhub_key:
            logging.warning("FINNHUB_API_KEY not set - finnhub source will return no data")

    return _config_instance

def reset_config():
    """Reset the configuration singleton (mainly for testing)"""
    global _config_instance
    _config_instance = None
