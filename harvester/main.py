#!/usr/bin/env python3
"""
Main entry point for the harvester.
Uses YAML configuration for clean, developer-friendly setup.
"""

import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from harvester.artifacts import ArtifactEmitter
from harvester.config import config
from harvester.config_loader import ConfigLoader
from harvester.exceptions import InitializationError, QueueStorageError
from harvester.orchestrator import ExtractionOrchestrator
from harvester.page_controller import PlaywrightPageController
from harvester.utils import (
    StatusReporter,
    create_sample_seed,
    print_summary,
    save_results_to_json,
    setup_logging,
    validate_dependencies,
)
from harvester.work_queue import WorkQueueStore

logger = logging.getLogger(__name__)

USAGE = """
Harvester - browser-driven page crawl and post extraction

Usage:
  python -m harvester.main                    # Run with config.yaml (or defaults)
  python -m harvester.main urls.json          # Seed from urls.json when no queue is stored
  python -m harvester.main --reset [urls.json]  # Drop the stored queue and start over
  python -m harvester.main --sample-config    # Create sample config.yaml
  python -m harvester.main --sample-seed      # Create sample chunk.json

Configuration:
  The harvester uses config.yaml in the current directory or project root.
  If no config.yaml exists, sensible defaults are used.

  The queue is stored in SQLite and survives restarts: interrupt a run at any
  time and start it again to continue with the remaining pages.
"""


async def harvest(run_config) -> Dict[str, Any]:
    """Run one harvesting session against a live browser tab."""
    queue = WorkQueueStore(run_config.queue_db)
    emitter = ArtifactEmitter(run_config.output_dir, run_config.snapshot_file, run_config.csv_encoding)
    status = StatusReporter()
    controller = PlaywrightPageController(run_config)
    orchestrator = ExtractionOrchestrator(run_config, queue, controller, emitter, status=status)

    try:
        # Fails before the browser starts if the queue is unusable
        await orchestrator.prepare()
        async with controller:
            return await orchestrator.run()
    finally:
        status.finish()


def _log_file_for_run(yaml_config: Dict[str, Any]) -> str:
    """Timestamped log file path for this run."""
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    base_log_file = (yaml_config.get('logging') or {}).get('file')
    if base_log_file:
        base = Path(base_log_file)
        log_dir = base.parent if base.parent != Path('.') else Path('logs')
        log_dir.mkdir(parents=True, exist_ok=True)
        return str(log_dir / f"{base.stem}_{timestamp}{base.suffix or '.log'}")

    log_dir = Path('logs')
    log_dir.mkdir(exist_ok=True)
    return str(log_dir / f"harvester_{timestamp}.log")


def main():
    """Main entry point for the harvester."""
    args = sys.argv[1:]

    if '--help' in args or '-h' in args:
        print(USAGE)
        return

    if '--sample-config' in args:
        ConfigLoader.create_sample_config()
        print("\n✅ Sample config.yaml created!")
        print("   Edit config.yaml to customize settings, then run: python -m harvester.main")
        return

    if '--sample-seed' in args:
        create_sample_seed()
        print("✅ Sample chunk.json created. Replace the URLs with the pages to harvest.")
        return

    try:
        yaml_config = ConfigLoader.load_config()
    except ValueError as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    if yaml_config:
        config.update_from_yaml(yaml_config)

    # Environment variables override YAML
    config.update_from_env()

    reset = '--reset' in args
    positional = [arg for arg in args if not arg.startswith('--')]
    if positional:
        seed_path = Path(positional[0])
        if not seed_path.exists():
            print(f"❌ Error: File not found: {positional[0]}")
            print("   Use --help for usage information")
            sys.exit(1)
        config.seed_file = str(seed_path)

    log_level = (yaml_config.get('logging') or {}).get('level', 'INFO')
    log_file = _log_file_for_run(yaml_config)
    setup_logging(log_level, log_file)
    logger.info(f"Logging configured successfully - log file: {log_file}")

    if not validate_dependencies():
        print("❌ Dependency validation failed. Please install missing packages.")
        sys.exit(1)

    config.validate()

    print("=" * 60)
    print("Harvester Configuration")
    print("=" * 60)
    print(f"  Seed file:        {config.seed_file}")
    print(f"  Queue database:   {config.queue_db}")
    print(f"  Output:           {config.output_dir}")
    print(f"  Liveness timeout: {config.liveness_timeout}s")
    print(f"  Browser mode:     {'Headless' if config.browser_headless else 'Visible'}")
    print(f"  Log file:         {log_file}")
    print("=" * 60)
    print()

    if reset:
        logger.info("Resetting stored work queue")
        WorkQueueStore(config.queue_db).clear()
        print("🗑️  Stored queue cleared, seeding again from the seed file")

    try:
        summary = asyncio.run(harvest(config))
    except InitializationError as e:
        logger.error(f"Fatal error: {e}")
        print(f"\n❌ Fatal error: {e}")
        sys.exit(1)
    except QueueStorageError as e:
        logger.error(f"Fatal queue storage error: {e}")
        print(f"\n❌ Fatal error: {e}")
        print("   Finished pages are saved. Fix the queue database and run again to resume.")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.warning("Harvesting interrupted by user")
        print("\n⚠️  Interrupted. Run again to resume with the remaining pages.")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Harvesting failed with error: {e}", exc_info=True)
        print(f"\n❌ Error: {e}")
        sys.exit(1)

    print_summary(summary)

    save_json = (yaml_config.get('results') or {}).get('save_json')
    if save_json:
        save_results_to_json(summary, save_json)
        print(f"\n💾 Run summary saved to: {save_json}")

    logger.info("Harvester completed")
    print("\n✅ Harvesting completed!")


if __name__ == '__main__':
    main()
