import logging

import pytest

from sqlscript.core.lexer import clear_rule_cache
from sqlscript.utils.logging import ROOT_LOGGER_NAME, set_correlation_id


@pytest.fixture(autouse=True)
def _reset_global_state():
    """Each test starts with empty rule caches, no correlation id and a propagating root logger."""
    clear_rule_cache()
    set_correlation_id(None)
    yield
    clear_rule_cache()
    set_correlation_id(None)
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(logging.NOTSET)
    root_logger.propagate = True
