"""
Configuration module for the harvester.
Handles queue locations, output paths, liveness and scroll timings, and browser settings.
Supports YAML configuration files for better developer experience.
"""

import logging
import os
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


class HarvesterConfig:
    """Configuration class for the harvester with all settings."""

    def __init__(self):
        logger.debug("Initializing HarvesterConfig")
        # Input and queue state
        self.seed_file = "chunk.json"
        self.queue_db = "harvest_state/queue.db"
        self.snapshot_file = "harvest_state/remaining_queue.json"

        # Output settings
        self.output_dir = "harvested"
        self.csv_encoding = "utf-8"

        # Timing settings (in seconds)
        self.liveness_timeout = 30.0  # No heartbeat for this long => page is skipped
        self.settle_delay = 2.0  # Wait after load-complete before extracting
        self.inter_item_pause = 2.0  # Pause between pages
        self.posts_click_wait = 3.0  # Wait after clicking through to the posts view
        self.scroll_interval = 3.0  # Wait after each scroll for new content
        self.scroll_max_stale_rounds = 3  # Scrolls without height change before stopping

        # Run limits
        self.max_items: Optional[int] = None  # None = run until the queue is empty

        # Browser settings
        self.browser_headless = False  # Extraction runs in a visible tab
        self.browser_channel: Optional[str] = None  # e.g. 'chrome' to use an installed Chrome
        self.user_data_dir: Optional[str] = None  # Persistent profile, keeps an existing login
        self.viewport_width = 1366
        self.viewport_height = 900
        self.browser_args = [
            '--no-first-run',
            '--disable-dev-shm-usage',
        ]

    def update_from_yaml(self, yaml_config: Dict[str, Any]) -> None:
        """
        Update configuration from YAML config dictionary.

        Handles nested YAML structure and maps to flat config attributes.

        Args:
            yaml_config: Dictionary loaded from YAML file
        """
        logger.debug(f"Updating configuration from YAML with {len(yaml_config)} top-level keys")

        if 'input' in yaml_config:
            inp = yaml_config['input'] or {}
            if 'seed_file' in inp:
                self.seed_file = inp['seed_file']

        if 'state' in yaml_config:
            state = yaml_config['state'] or {}
            if 'queue_db' in state:
                self.queue_db = state['queue_db']
            if 'snapshot_file' in state:
                self.snapshot_file = state['snapshot_file']

        if 'output' in yaml_config:
            output = yaml_config['output'] or {}
            if 'dir' in output:
                self.output_dir = output['dir']
            if 'encoding' in output:
                self.csv_encoding = output['encoding']

        if 'timings' in yaml_config:
            timings = yaml_config['timings'] or {}
            if 'liveness_timeout' in timings:
                self.liveness_timeout = timings['liveness_timeout']
            if 'settle_delay' in timings:
                self.settle_delay = timings['settle_delay']
            if 'inter_item_pause' in timings:
                self.inter_item_pause = timings['inter_item_pause']
            if 'posts_click_wait' in timings:
                self.posts_click_wait = timings['posts_click_wait']
            if 'scroll_interval' in timings:
                self.scroll_interval = timings['scroll_interval']
            if 'scroll_max_stale_rounds' in timings:
                self.scroll_max_stale_rounds = timings['scroll_max_stale_rounds']

        if 'limits' in yaml_config:
            limits = yaml_config['limits'] or {}
            if 'max_items' in limits:
                self.max_items = limits['max_items']

        if 'browser' in yaml_config:
            browser = yaml_config['browser'] or {}
            if 'headless' in browser:
                self.browser_headless = browser['headless']
            if 'channel' in browser:
                self.browser_channel = browser['channel']
            if 'user_data_dir' in browser:
                self.user_data_dir = browser['user_data_dir']
            if 'viewport' in browser:
                viewport = browser['viewport'] or {}
                if 'width' in viewport:
                    self.viewport_width = viewport['width']
                if 'height' in viewport:
                    self.viewport_height = viewport['height']
            if 'args' in browser:
                self.browser_args = browser['args']

        logger.info("Configuration updated from YAML")

    def update_from_env(self) -> None:
        """Update configuration from environment variables."""
        logger.debug("Updating configuration from environment variables")

        env_mappings = {
            'HARVESTER_SEED_FILE': ('seed_file', str),
            'HARVESTER_QUEUE_DB': ('queue_db', str),
            'HARVESTER_OUTPUT_DIR': ('output_dir', str),
            'HARVESTER_LIVENESS_TIMEOUT': ('liveness_timeout', float),
            'HARVESTER_SETTLE_DELAY': ('settle_delay', float),
            'HARVESTER_INTER_ITEM_PAUSE': ('inter_item_pause', float),
            'HARVESTER_HEADLESS': ('browser_headless', lambda x: x.lower() == 'true'),
            'HARVESTER_USER_DATA_DIR': ('user_data_dir', str),
            'HARVESTER_MAX_ITEMS': ('max_items', int),
        }

        updated_from_env = []
        for env_var, (attr, converter) in env_mappings.items():
            value = os.getenv(env_var)
            if value is not None:
                try:
                    setattr(self, attr, converter(value))
                    updated_from_env.append(env_var)
                    logger.debug(f"Set {attr} from {env_var}: {value}")
                except (ValueError, TypeError) as e:
                    logger.warning(f"Invalid value for {env_var}: {value} - {e}")

        if updated_from_env:
            logger.info(f"Updated configuration from environment variables: {updated_from_env}")
        else:
            logger.debug("No environment variables found for configuration")

    def validate(self) -> bool:
        """Validate configuration values, clamping anything out of range."""
        logger.debug("Validating configuration values")

        validation_warnings = []

        if self.liveness_timeout <= 0:
            validation_warnings.append("liveness_timeout must be positive, using 30 seconds")
            self.liveness_timeout = 30.0

        for attr in ('settle_delay', 'inter_item_pause', 'posts_click_wait', 'scroll_interval'):
            if getattr(self, attr) < 0:
                validation_warnings.append(f"{attr} cannot be negative, using 0")
                setattr(self, attr, 0.0)

        if self.scroll_max_stale_rounds < 1:
            validation_warnings.append("scroll_max_stale_rounds should be at least 1")
            self.scroll_max_stale_rounds = 1

        # A heartbeat is sent once per scroll round, so a shorter window stalls every page
        if self.liveness_timeout <= self.scroll_interval:
            validation_warnings.append(
                f"liveness_timeout ({self.liveness_timeout}s) should exceed scroll_interval "
                f"({self.scroll_interval}s), pages will stall while scrolling"
            )

        if self.max_items is not None and self.max_items < 1:
            validation_warnings.append("max_items should be at least 1, ignoring limit")
            self.max_items = None

        for warning in validation_warnings:
            logger.warning(f"Configuration validation warning: {warning}")

        if validation_warnings:
            logger.info(f"Configuration validation completed with {len(validation_warnings)} warnings")
        else:
            logger.debug("Configuration validation completed successfully")

        return True

    def extraction_options(self) -> Dict[str, Any]:
        """Timing options handed to the in-page extraction script (milliseconds)."""
        return {
            'postsClickWaitMs': int(self.posts_click_wait * 1000),
            'scrollIntervalMs': int(self.scroll_interval * 1000),
            'maxStaleRounds': int(self.scroll_max_stale_rounds),
        }

    def __str__(self) -> str:
        """String representation of configuration."""
        return f"""Harvester Configuration:
- Seed file: {self.seed_file}
- Queue database: {self.queue_db}
- Output directory: {self.output_dir}
- Liveness timeout: {self.liveness_timeout}s
- Headless: {self.browser_headless}
"""


# Global configuration instance
config = HarvesterConfig()
