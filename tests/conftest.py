from __future__ import annotations

import logging

import pytest

from debugmenu.config import CLIENT_CONFIG
from fakes import TransportFactory


@pytest.fixture
def factory() -> TransportFactory:
    return TransportFactory()


@pytest.fixture
def restore_config():
    saved = dict(CLIENT_CONFIG)
    root_level = logging.getLogger().level
    yield CLIENT_CONFIG
    CLIENT_CONFIG.clear()
    CLIENT_CONFIG.update(saved)
    logging.getLogger().setLevel(root_level)
