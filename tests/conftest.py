"""Shared fixtures for taskbalance tests.

Drivers run real work functions from tests/drivers.py; randomness comes
from seeded random.Random instances so selection is reproducible.
"""

from __future__ import annotations

import random
from pathlib import Path

import pytest

from taskbalance.balancer.task import Task
from taskbalance.core.config import AppConfig, load_config
from tests.drivers import fail, succeed


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config_dir() -> Path:
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def app_config(config_dir: Path) -> AppConfig:
    return load_config(config_dir=config_dir)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("TASKBALANCE_LOG_LEVEL", raising=False)
    monkeypatch.delenv("TASKBALANCE_SEED", raising=False)


# ---------------------------------------------------------------------------
# Task fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def task(rng) -> Task:
    return Task("sms", data={"to": "555-0100"}, rng=rng)


@pytest.fixture
def failover_task(rng) -> Task:
    """A primary that fails, two failing backups and one succeeding backup."""
    task = Task("sms", rng=rng)
    task.add_driver("primary", work=fail)
    task.add_driver("b1", work=fail, weight=0, backup=True)
    task.add_driver("b2", work=fail, weight=0, backup=True)
    task.add_driver("b3", work=succeed, weight=0, backup=True)
    return task


@pytest.fixture
def task_spec_file(tmp_path: Path) -> Path:
    path = tmp_path / "task.yaml"
    path.write_text(
        "name: sms\n"
        "data:\n"
        "  to: 555-0100\n"
        "drivers:\n"
        "  - name: primary\n"
        "    weight: 1\n"
        "    work: tests.drivers:fail\n"
        "  - name: fallback\n"
        "    weight: 0\n"
        "    backup: true\n"
        "    work: tests.drivers:echo\n",
        encoding="utf-8",
    )
    return path
