"""Pytest configuration and shared fixtures for dockstage tests."""

from __future__ import annotations

import logging
import os
from collections.abc import Generator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dockstage.deploy.engine import BuildEvent


@pytest.fixture
def isolated_env() -> Generator[dict[str, str]]:
    """Provide isolated environment variables for testing.

    Yields:
        Dictionary of original environment variables

    Cleanup:
        Restores original environment after test
    """
    original_env = os.environ.copy()
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture(autouse=True)
def reset_dockstage_logging() -> Generator[None]:
    """Drop handlers installed by setup_logging during a test."""
    yield
    logger = logging.getLogger("dockstage")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def primary_dir(tmp_path: Path) -> Path:
    """Create a primary build-context directory holding a Dockerfile."""
    primary = tmp_path / "docker"
    primary.mkdir()
    (primary / "Dockerfile").write_text("FROM scratch\nCOPY root /root\n")
    (primary / "root").mkdir()
    (primary / "root" / "test").write_text("primary\n")
    return primary


@pytest.fixture
def mock_engine() -> MagicMock:
    """Create a mock engine connection that builds sha256:abc123."""
    engine = MagicMock()
    engine.__enter__.return_value = engine
    engine.build.side_effect = lambda *args, **kwargs: iter(
        [
            BuildEvent(stream="Step 1/2 : FROM scratch\n"),
            BuildEvent(status="Downloading"),
            BuildEvent(stream="Step 2/2 : COPY root /root\n"),
            BuildEvent(image_id="sha256:abc123"),
        ]
    )
    engine.tag.return_value = True
    engine.push.side_effect = lambda *args, **kwargs: iter([])
    return engine


@pytest.fixture
def engine_factory(mock_engine: MagicMock) -> MagicMock:
    """Create an engine factory returning the mock engine."""
    return MagicMock(return_value=mock_engine)
