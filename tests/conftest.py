# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Shared fixtures for unit tests."""

import logging
from typing import Iterator

import pytest

from tests.helpers import FakeAnalyzer


@pytest.fixture
def fake_analyzer() -> FakeAnalyzer:
    return FakeAnalyzer()


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    """setup_logging() replaces root handlers; put them back after each test."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
