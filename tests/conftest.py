"""Shared pytest fixtures."""

import logging

import pytest


@pytest.fixture(autouse=True)
def propagate_app_logs():
    """Let caplog see records from the application logger tree.

    Importing the app configures the ``src`` logger with its own handler and
    no propagation.
    """
    logger = logging.getLogger("src")
    previous = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = previous
