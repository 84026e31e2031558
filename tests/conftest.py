"""Shared pytest fixtures"""

import pytest

from core.config import StudioConfig
from core.pipeline import ProjectPipeline
from core.polling import PollingPolicy
from core.providers import MockGenerationBackend


# ============================================================
# Mock Backend
# ============================================================

@pytest.fixture
def mock_backend():
    """Fresh mock backend for each test"""
    backend = MockGenerationBackend()
    yield backend
    backend.reset()


# ============================================================
# Pipeline
# ============================================================

@pytest.fixture
def fast_config():
    """Config with a zero poll interval so video tests run instantly"""
    return StudioConfig(polling=PollingPolicy(interval=0.0, max_attempts=20, timeout=None))


@pytest.fixture
def pipeline(mock_backend, fast_config):
    """Pipeline in the initial state, wired to the mock backend"""
    return ProjectPipeline(mock_backend, fast_config)
