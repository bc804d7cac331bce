import pytest

from recommendable.config import Settings
from recommendable.recommender import redis_client


@pytest.fixture(autouse=True)
def reset_singleton(monkeypatch):
    monkeypatch.setattr(redis_client, "_redis_client_instance", None)


def test_create_from_host_port():
    config = Settings()
    config.redis_url = None
    config.redis_host = "cache.internal"
    config.redis_port = 6380
    config.redis_db = 2

    client = redis_client.create_redis_client(config)

    kwargs = client.connection_pool.connection_kwargs
    assert (kwargs["host"], kwargs["port"], kwargs["db"]) == ("cache.internal", 6380, 2)
    assert kwargs["decode_responses"] is True


def test_create_from_url():
    config = Settings()
    config.redis_url = "redis://:secret@cache.internal:6390/3"

    client = redis_client.create_redis_client(config)

    kwargs = client.connection_pool.connection_kwargs
    assert (kwargs["host"], kwargs["port"], kwargs["db"]) == ("cache.internal", 6390, 3)


def test_singleton_and_close():
    config = Settings()
    config.redis_url = None

    first = redis_client.get_redis_client(config)
    assert redis_client.get_redis_client() is first

    redis_client.close_redis_client()
    assert redis_client._redis_client_instance is None
