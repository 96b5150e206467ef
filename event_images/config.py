"""JSON-backed settings for the event image pipeline."""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
CONFIG_PATH = CONFIG_DIR / "settings.json"


@dataclass
class Config:
    """All user-configurable settings with sensible defaults."""

    max_upload_mb: float = 10.0
    large_file_notice_mb: float = 2.0

    # Compression path (event cover images)
    compress_max_width: int = 1200
    compress_max_height: int = 800
    compress_quality: float = 0.8
    compress_max_size_kb: int = 500  # 0 disables the quality search

    # Plain resize path
    resize_max_width: int = 800
    resize_max_height: int = 600
    resize_quality: float = 0.8

    decode_timeout: float = 30.0  # seconds
    fetch_timeout: int = 30

    window_width: int = 900
    window_height: int = 640

    def to_dict(self) -> Dict[str, Any]:
        """Serialize config to a plain dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dict, ignoring unknown keys."""
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered)

    def compress_params(self) -> Dict[str, Any]:
        """Keyword arguments for pipeline.compress_image / compress_encoded."""
        return {
            "max_width": self.compress_max_width,
            "max_height": self.compress_max_height,
            "quality": self.compress_quality,
            "max_size_kb": self.compress_max_size_kb,
            "decode_timeout": self.decode_timeout,
        }

    def resize_params(self) -> Dict[str, Any]:
        """Keyword arguments for pipeline.resize_image."""
        return {
            "max_width": self.resize_max_width,
            "max_height": self.resize_max_height,
            "quality": self.resize_quality,
            "decode_timeout": self.decode_timeout,
        }


def load_config(path: Path = CONFIG_PATH) -> Config:
    """Load config from JSON file. Returns defaults if file missing."""
    if not path.exists():
        logger.info("No config file at %s, using defaults", path)
        return Config()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        logger.info("Loaded config from %s", path)
        return Config.from_dict(raw)
    except (json.JSONDecodeError, TypeError, AttributeError) as exc:
        logger.warning("Corrupt config at %s: %s, using defaults", path, exc)
        return Config()


def save_config(config: Config, path: Path = CONFIG_PATH) -> None:
    """Write config to JSON file, creating parent dirs as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(config.to_dict(), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    logger.info("Saved config to %s", path)
