from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger("htn_colony")
    for handler in list(logger.handlers):
        if getattr(handler, "_htn_colony", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
