"""Unit tests for typepack.logging module."""

import logging

from typepack.logging import (
    TYPEPACK_ROOT_LOGGER,
    configure_logging,
    get_logger,
    set_level,
)


class TestGetLogger:
    """Tests for component logger lookup."""

    def test_root(self):
        assert get_logger().name == TYPEPACK_ROOT_LOGGER

    def test_component_is_child_of_root(self):
        logger = get_logger("service")
        assert logger.name == "typepack.service"
        assert logger.parent is logging.getLogger(TYPEPACK_ROOT_LOGGER)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_sets_root_level(self):
        logger = configure_logging(level=logging.ERROR)
        assert logger.name == TYPEPACK_ROOT_LOGGER
        assert logger.level == logging.ERROR

    def test_installs_given_handler_once(self):
        root = get_logger()
        root.handlers = []
        first = logging.StreamHandler()
        configure_logging(level=logging.DEBUG, handler=first)
        configure_logging(level=logging.DEBUG, handler=logging.StreamHandler())
        assert root.handlers == [first]
        assert first.level == logging.DEBUG

    def test_service_debug_reaches_handler(self, service):
        records = []

        class Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        get_logger().handlers = []
        configure_logging(level=logging.DEBUG, handler=Collect())
        service.get_type_code(int, str)
        assert any(r.name == "typepack.service" for r in records)


class TestSetLevel:
    """Tests for set_level."""

    def test_component(self):
        set_level(logging.WARNING, "service")
        try:
            assert get_logger("service").level == logging.WARNING
        finally:
            set_level(logging.NOTSET, "service")

    def test_root(self):
        set_level(logging.CRITICAL)
        assert get_logger().level == logging.CRITICAL
