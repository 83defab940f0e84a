"""
YAML configuration loader for the harvester.
Provides clean, developer-friendly configuration management.
"""

import logging
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

SAMPLE_CONFIG = """# Harvester Configuration
# All settings are optional - defaults will be used if not specified

# Initial queue: JSON array of page URLs, read only when no queue is stored yet
input:
  seed_file: chunk.json

# Persisted queue state
state:
  queue_db: harvest_state/queue.db
  snapshot_file: harvest_state/remaining_queue.json  # Remaining URLs, rewritten after each page

# Output Settings
output:
  dir: harvested  # One CSV per page
  encoding: utf-8

# Timing Settings (seconds)
timings:
  liveness_timeout: 30  # Skip a page after this long without a heartbeat
  settle_delay: 2  # Wait after page load before extracting
  inter_item_pause: 2  # Pause between pages
  posts_click_wait: 3
  scroll_interval: 3
  scroll_max_stale_rounds: 3

# Run Limits
limits:
  max_items: null  # null = run until the queue is empty

# Browser Settings
browser:
  headless: false
  channel: null  # e.g. chrome
  user_data_dir: null  # Persistent browser profile directory
  viewport:
    width: 1366
    height: 900
  args:
    - --no-first-run
    - --disable-dev-shm-usage

# Logging Settings
logging:
  level: INFO  # DEBUG, INFO, WARNING, ERROR
  file: null  # Optional log file path

# Results Settings
results:
  save_json: null  # Optional path to save the run summary JSON
"""


class ConfigLoader:
    """Handles loading of YAML configuration files."""

    @staticmethod
    def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Search order:
        1. Explicit config_path if provided
        2. config.yaml in current directory
        3. config.yaml in project root
        4. Returns empty dict (will use defaults)

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Dictionary of configuration values
        """
        if config_path:
            config_file = Path(config_path)
            if not config_file.exists():
                logger.warning(f"Config file not found at explicit path: {config_path}")
                return {}
        else:
            config_file = Path("config.yaml")
            if not config_file.exists():
                # Project root, one level up from the package
                config_file = Path(__file__).parent.parent / "config.yaml"
                if not config_file.exists():
                    logger.info("No config.yaml found, using defaults")
                    return {}

        try:
            logger.info(f"Loading configuration from: {config_file}")
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML config file: {e}")
            raise ValueError(f"Invalid YAML in config file: {e}")

        if not isinstance(config_data, dict):
            raise ValueError(f"Config file {config_file} must contain a mapping at the top level")

        logger.info(f"Successfully loaded configuration from {config_file}")
        return config_data

    @staticmethod
    def create_sample_config(output_path: Path = Path("config.yaml")) -> None:
        """
        Create a sample config.yaml file with all available options.

        Args:
            output_path: Path where to create the sample config file
        """
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                f.write(SAMPLE_CONFIG)
            logger.info(f"Sample config file created at: {output_path}")
        except OSError as e:
            logger.error(f"Error creating sample config file: {e}")
            raise
