"""Unit tests configuration file."""

import os

import pytest

FIXTURE_DIR = os.path.join(os.path.dirname(os.path.realpath(__file__)), "definition")


def pytest_configure(config):
    """Disable verbose output when running tests."""
    terminal = config.pluginmanager.getplugin("terminal")
    if terminal:
        terminal.TerminalReporter.showfspath = False


@pytest.fixture
def layout_file():
    """Path to the sample layout definition file."""
    return os.path.join(FIXTURE_DIR, "layouts.pod")
