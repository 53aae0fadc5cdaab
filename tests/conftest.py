"""Shared fixtures: keep navigation channel logs inside each test's tmp dir."""

from __future__ import annotations

import pytest

from core.telemetry.loggers import navigation_logger


@pytest.fixture(autouse=True)
def isolated_navigation_logger(tmp_path):
    navigation_logger.reset_navigation_logger()
    nav_logger = navigation_logger.get_navigation_logger(session_dir=tmp_path / "nav_logs")
    yield nav_logger
    navigation_logger.reset_navigation_logger()
