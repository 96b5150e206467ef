"""Configuration validation logic."""

from typing import Optional, Tuple

from event_images.config import Config
from event_images.image_utils import QUALITY_FLOOR


class ConfigValidator:
    """Pure validation logic for configuration objects."""

    @staticmethod
    def validate(config: Config) -> Tuple[bool, Optional[str]]:
        """Validate that config values are usable by the image pipeline.

        Args:
            config: Configuration object to validate

        Returns:
            Tuple of (is_valid, error_message).
            If valid, error_message is None.
            If invalid, error_message describes the problem.
        """
        for name in ("compress_quality", "resize_quality"):
            value = getattr(config, name)
            if not QUALITY_FLOOR <= value <= 1.0:
                return False, f"{name} must be between {QUALITY_FLOOR} and 1.0, got {value}."

        for name in (
            "compress_max_width",
            "compress_max_height",
            "resize_max_width",
            "resize_max_height",
        ):
            if getattr(config, name) <= 0:
                return False, f"{name} must be a positive number of pixels."

        if config.max_upload_mb <= 0:
            return False, "max_upload_mb must be positive."

        if config.compress_max_size_kb < 0:
            return False, "compress_max_size_kb cannot be negative (use 0 to disable)."

        if config.large_file_notice_mb < 0:
            return False, "large_file_notice_mb cannot be negative."

        if config.decode_timeout <= 0 or config.fetch_timeout <= 0:
            return False, "Timeouts must be positive."

        return True, None

    @staticmethod
    def is_valid(config: Config) -> bool:
        """Convenience wrapper returning only the verdict."""
        is_valid, _ = ConfigValidator.validate(config)
        return is_valid
