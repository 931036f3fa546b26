import calendar
import os
from datetime import date

import pytest

from log_timeline.config import Config
from log_timeline.session import TimelineSession

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")

DAY = date(2025, 11, 21)
DAY_MS = calendar.timegm(DAY.timetuple()) * 1000


@pytest.fixture
def client_log_path():
    return os.path.join(FIXTURES, "client_logs.json")


@pytest.fixture
def server_log_path():
    return os.path.join(FIXTURES, "server_logs.log")


@pytest.fixture
def client_log_text(client_log_path):
    with open(client_log_path, "r", encoding="utf-8") as f:
        return f.read()


@pytest.fixture
def server_log_text(server_log_path):
    with open(server_log_path, "r", encoding="utf-8") as f:
        return f.read()


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def session(config):
    """Empty session pinned to a fixed day for server timestamps."""
    return TimelineSession(config, today=DAY)
