"""
Pytest configuration and fixtures.

Add any shared fixtures or pytest configuration here.
"""

import logging
import sys

import pytest

from kernelframe import Session

from .fixtures.fake_gateway import FakeGateway


def pytest_configure(config):
    """Configure pytest with custom settings."""
    log_level = logging.DEBUG if config.getoption("--debug-kernelframe") else logging.INFO

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("kernelframe").setLevel(log_level)
    logging.getLogger("asyncio").setLevel(log_level)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    custom_log_file = config.getoption("--kernelframe-log-file")
    if custom_log_file:
        file_handler = logging.FileHandler(custom_log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
            )
        )
        logging.getLogger().addHandler(file_handler)


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--debug-kernelframe",
        action="store_true",
        default=False,
        help="Enable debug logging for kernelframe (shows every generated statement)",
    )
    parser.addoption(
        "--kernelframe-log-file",
        action="store",
        default=None,
        help="Log kernelframe debug output to specified file",
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def session(gateway):
    return Session("local[*]", "test", gateway=gateway)
