"""Shared pytest fixtures for Qt application lifecycle."""

import sys

import pytest
from PySide6.QtCore import QCoreApplication


@pytest.fixture(scope="session")
def app():
    """Provide a single QCoreApplication for all tests."""
    instance = QCoreApplication.instance()
    if instance is None:
        instance = QCoreApplication(sys.argv)

    yield instance

    QCoreApplication.processEvents()
