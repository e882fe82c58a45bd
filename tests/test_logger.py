import logging
from typing import Iterator

import pytest

from llm_tool_orchestrator.llm_core import get_logger, setup_logging


@pytest.fixture
def clean_root_logger() -> Iterator[logging.Logger]:
    root = logging.getLogger("llm_tool_orchestrator")
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


def test_get_logger_names() -> None:
    assert get_logger().name == "llm_tool_orchestrator"
    assert get_logger("llm_tool_orchestrator.llm_core.config").name == "llm_tool_orchestrator.llm_core.config"
    assert get_logger("my_app").name == "llm_tool_orchestrator.my_app"


def test_library_installs_null_handler() -> None:
    assert any(isinstance(h, logging.NullHandler) for h in logging.getLogger("llm_tool_orchestrator").handlers)


def test_setup_logging_is_idempotent(clean_root_logger: logging.Logger) -> None:
    setup_logging(logging.DEBUG)
    setup_logging(logging.DEBUG)

    stream_handlers = [
        h
        for h in clean_root_logger.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.NullHandler)
    ]
    assert len(stream_handlers) == 1
    assert clean_root_logger.level == logging.DEBUG
