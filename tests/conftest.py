"""Shared pytest fixtures for typepack tests."""

import logging
from dataclasses import dataclass
from typing import List

import pytest

from typepack.config import PackConfig
from typepack.logging import TYPEPACK_ROOT_LOGGER
from typepack.serialization.classifier import TypeClassifier
from typepack.serialization.service import PackService


@dataclass
class MyData:
    id: int
    message: str
    values: List[float]


@pytest.fixture(autouse=True)
def _restore_typepack_logger():
    """Undo logger state changes made by a test."""
    logger = logging.getLogger(TYPEPACK_ROOT_LOGGER)
    level, disabled, handlers = logger.level, logger.disabled, list(logger.handlers)
    yield
    logger.setLevel(level)
    logger.disabled = disabled
    logger.handlers = handlers


@pytest.fixture
def default_config():
    """Create a default PackConfig."""
    return PackConfig()


@pytest.fixture
def service():
    """Create a PackService with the default configuration."""
    return PackService()


@pytest.fixture
def int64_service():
    """Create a PackService mapping plain int to INT64."""
    return PackService(PackConfig(default_integer_type="INT64"))


@pytest.fixture
def classifier():
    """Create a TypeClassifier with the default integer and float kinds."""
    return TypeClassifier()


@pytest.fixture
def my_data():
    """Create the reference record: 34 bytes on the wire."""
    return MyData(id=42, message="hi", values=[1.0, 2.0])


@pytest.fixture
def my_data_type():
    return MyData
