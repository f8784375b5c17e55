"""
Configuration Loader

Loads extraction and export settings from YAML. Missing keys fall back to
the defaults on ExtractionConfig.
"""

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

DEFAULT_CONFIG_FILE = "extraction_config.yaml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ExtractionConfig:
    """Complete extraction configuration."""
    version: str = "1.0"
    config_name: str = "default"

    # Input
    file_extension: str = ".dsx"
    encoding: str = "utf-8"

    # Processing
    include_token_count: bool = False
    chars_per_token: int = 4
    continue_on_error: bool = False

    # Export
    export_indent: int = 2
    export_archive_name: str = "datastage_jobs.zip"

    # Logging
    log_level: str = "INFO"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ConfigLoader:
    """
    Loads and validates extraction configuration.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize with optional custom config directory."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)

    def load_config(self, config_file: str = DEFAULT_CONFIG_FILE) -> ExtractionConfig:
        """Load the main configuration file."""
        config_path = self.config_dir / config_file

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            raw_config = yaml.safe_load(f) or {}

        settings = raw_config.get("settings", {})
        extraction = settings.get("extraction", {})
        processing = settings.get("processing", {})
        export = settings.get("export", {})
        logging_settings = settings.get("logging", {})

        defaults = ExtractionConfig()
        return ExtractionConfig(
            version=str(raw_config.get("version", defaults.version)),
            config_name=raw_config.get("config_name", defaults.config_name),

            # Input
            file_extension=extraction.get("file_extension", defaults.file_extension),
            encoding=extraction.get("encoding", defaults.encoding),

            # Processing
            include_token_count=processing.get("include_token_count", defaults.include_token_count),
            chars_per_token=processing.get("chars_per_token", defaults.chars_per_token),
            continue_on_error=processing.get("continue_on_error", defaults.continue_on_error),

            # Export
            export_indent=export.get("indent", defaults.export_indent),
            export_archive_name=export.get("archive_name", defaults.export_archive_name),

            # Logging
            log_level=str(logging_settings.get("level", defaults.log_level)).upper(),
        )

    def validate(self, config: ExtractionConfig) -> List[str]:
        """Return a list of problems with a loaded configuration."""
        problems = []
        if not config.file_extension.startswith("."):
            problems.append(f"file_extension must start with '.', got {config.file_extension!r}")
        if not isinstance(config.chars_per_token, int) or config.chars_per_token <= 0:
            problems.append(f"chars_per_token must be a positive integer, got {config.chars_per_token!r}")
        if not isinstance(config.export_indent, int) or config.export_indent < 0:
            problems.append(f"export indent must be a non-negative integer, got {config.export_indent!r}")
        if not config.export_archive_name.endswith(".zip"):
            problems.append(f"archive_name must end with .zip, got {config.export_archive_name!r}")
        if config.log_level not in LOG_LEVELS:
            problems.append(f"log level must be one of {', '.join(LOG_LEVELS)}, got {config.log_level!r}")
        return problems


def configure_logging(level: str = "INFO"):
    """Apply the shared log format and set the root level.

    The level is applied even when handlers are already installed.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger().setLevel(numeric_level)


if __name__ == "__main__":
    loader = ConfigLoader()
    config = loader.load_config()

    print(f"Loaded config: {config.config_name}")
    print(f"  Extension: {config.file_extension}")
    print(f"  Token count: {config.include_token_count} ({config.chars_per_token} chars/token)")
    print(f"  Export: {config.export_archive_name} (indent={config.export_indent})")
