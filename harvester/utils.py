"""
Utility functions for the harvester.
Includes logging setup, the rolling status line, run summaries and sample files.
"""

import json
import logging
import sys
from typing import Dict, Any, Optional, TextIO

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = 'INFO', log_file: str = None) -> logging.Logger:
    """
    Set up logging configuration for the harvester.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger('harvester')
    logger.setLevel(getattr(logging, log_level.upper()))

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console goes to stderr so the status line on stdout stays readable
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not create log file {log_file}: {e}")

    logger.debug(f"Log level set to: {log_level}")
    return logger


class StatusReporter:
    """Single rolling status line reflecting the current page and phase."""

    def __init__(self, stream: Optional[TextIO] = None, enabled: bool = True):
        self.stream = stream or sys.stdout
        self.enabled = enabled
        self.last_status = ""
        self._width = 0

    def __call__(self, text: str) -> None:
        self.report(text)

    def report(self, text: str) -> None:
        """Replace the status line with text."""
        self.last_status = text
        logger.debug(f"Status: {text}")
        if not self.enabled:
            return
        padding = " " * max(0, self._width - len(text))
        self.stream.write(f"\r{text}{padding}")
        self.stream.flush()
        self._width = len(text)

    def finish(self) -> None:
        """End the status line so later output starts on a fresh line."""
        if self.enabled and self._width:
            self.stream.write("\n")
            self.stream.flush()
        self._width = 0


def save_results_to_json(results: Dict[str, Any], output_file: str) -> None:
    """
    Save the run summary to a JSON file.

    Args:
        results: Summary dictionary to save
        output_file: Output file path
    """
    logger.info(f"Saving results to JSON file: {output_file}")
    try:
        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(results, f, indent=2, ensure_ascii=False, default=str)
        logger.info(f"Results saved successfully to {output_file}")
    except OSError as e:
        logger.error(f"Error saving results to {output_file}: {e}")


def print_summary(summary: Dict[str, Any]) -> None:
    """
    Print a formatted summary of a harvesting run.

    Args:
        summary: Summary dictionary from the orchestrator
    """
    outcomes = summary['outcomes']
    print("\n" + "=" * 60)
    print("HARVESTER SUMMARY")
    print("=" * 60)

    print(f"Total execution time: {summary['total_time']:.2f} seconds")
    print(f"Pages processed: {summary['items_processed']}")
    print(f"  With posts: {outcomes['success']}")
    print(f"  No posts: {outcomes['empty'] + outcomes['sentinel']}")
    print(f"  Stalled: {outcomes['stalled']}")
    print(f"  Errors: {outcomes['error']}")
    print(f"Records written: {summary['records_written']}")
    print(f"Artifact write failures: {summary['write_failures']}")
    print(f"Pages remaining in queue: {summary['remaining']}")

    print("\nPerformance:")
    print(f"  Pages per minute: {summary['performance']['pages_per_minute']:.2f}")

    print("\n" + "=" * 60)


def create_sample_seed(output_file: str = 'chunk.json') -> None:
    """
    Create a sample seed file with example page URLs.

    Args:
        output_file: Path for the sample seed file
    """
    sample_urls = [
        "https://www.linkedin.com/company/example-one/",
        "https://www.linkedin.com/company/example-two/",
    ]
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(sample_urls, f, indent=2)
    logger.info(f"Sample seed file created: {output_file}")


def validate_dependencies() -> bool:
    """
    Validate that all required dependencies are installed.

    Returns:
        True if all dependencies are available
    """
    logger.debug("Validating required dependencies")
    missing_deps = []

    for module_name, package_name in (('playwright', 'playwright'), ('aiofiles', 'aiofiles'),
                                      ('yaml', 'pyyaml'), ('dateutil', 'python-dateutil')):
        try:
            __import__(module_name)
            logger.debug(f"✓ {module_name} available")
        except ImportError:
            missing_deps.append(package_name)
            logger.debug(f"✗ {module_name} missing")

    if missing_deps:
        logger.error(f"Missing required dependencies: {missing_deps}")
        print("Missing required dependencies:")
        for dep in missing_deps:
            print(f"  - {dep}")
        print("\nInstall with: pip install " + " ".join(missing_deps))
        if 'playwright' in missing_deps:
            print("Also run: playwright install chromium")
        return False

    logger.info("All required dependencies are available")
    return True
