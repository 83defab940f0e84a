"""Shared fixtures: a fast config and temporary queue/artifact locations."""

import json
from pathlib import Path

import pytest

from harvester.artifacts import ArtifactEmitter
from harvester.config import HarvesterConfig
from harvester.work_queue import WorkQueueStore


@pytest.fixture
def config(tmp_path: Path) -> HarvesterConfig:
    cfg = HarvesterConfig()
    cfg.seed_file = str(tmp_path / "chunk.json")
    cfg.queue_db = str(tmp_path / "state" / "queue.db")
    cfg.snapshot_file = str(tmp_path / "state" / "remaining_queue.json")
    cfg.output_dir = str(tmp_path / "out")
    cfg.liveness_timeout = 0.1
    cfg.settle_delay = 0
    cfg.inter_item_pause = 0
    return cfg


@pytest.fixture
def write_seed(config: HarvesterConfig):
    def _write(urls) -> Path:
        path = Path(config.seed_file)
        path.write_text(json.dumps(urls), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def queue(config: HarvesterConfig) -> WorkQueueStore:
    return WorkQueueStore(config.queue_db)


@pytest.fixture
def emitter(config: HarvesterConfig) -> ArtifactEmitter:
    return ArtifactEmitter(config.output_dir, config.snapshot_file)
