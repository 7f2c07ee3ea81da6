# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- fakeredis-backed async clients (one FakeServer per test)
- Settings for a fixed app:acme:billing:test namespace
- StatsService instances wired to the fake client
"""

import fakeredis
import pytest

from statcounter.infrastructure.service import StatsService
from statcounter.infrastructure.topology import Topology
from statcounter.utils.config import AppSettings, Settings, ValkeySettings


@pytest.fixture()
def fake_server():
    """A fresh in-memory store shared by every client in one test."""
    return fakeredis.FakeServer()


@pytest.fixture()
def fake_redis(fake_server):
    """An async fakeredis client.

    Uses decode_responses=True to match the real client configuration.
    """
    return fakeredis.FakeAsyncRedis(server=fake_server, decode_responses=True)


@pytest.fixture()
def settings():
    """Settings for a single-node store and a fixed namespace."""
    return Settings(
        app=AppSettings(system="acme", product="billing", environment="test"),
        valkey=ValkeySettings(host="localhost", port=6379, cluster_nodes="", scan_page_size=100),
    )


@pytest.fixture()
def stats(settings, fake_redis):
    """A StatsService backed by fakeredis."""
    return StatsService(settings, client=fake_redis)


@pytest.fixture()
def cluster_stats(settings, fake_redis):
    """A StatsService that reports a cluster topology."""
    return StatsService(settings, client=fake_redis, topology=Topology.CLUSTER)
