"""Tests for Redis lock helpers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import redis

from pick_battles.utils.redis_lock import acquire_redis_lock, release_redis_lock

_MOD = "pick_battles.utils.redis_lock"


class TestAcquireRedisLock:
    @patch(f"{_MOD}.redis.from_url")
    def test_acquired(self, mock_from_url):
        client = MagicMock()
        client.set.return_value = True
        mock_from_url.return_value = client

        assert acquire_redis_lock("lock:test", timeout=120) is True
        client.set.assert_called_once_with("lock:test", "1", nx=True, ex=120)

    @patch(f"{_MOD}.redis.from_url")
    def test_already_held(self, mock_from_url):
        client = MagicMock()
        client.set.return_value = None
        mock_from_url.return_value = client

        assert acquire_redis_lock("lock:test") is False

    @patch(f"{_MOD}.redis.from_url", side_effect=redis.ConnectionError("down"))
    def test_redis_down_proceeds(self, mock_from_url):
        assert acquire_redis_lock("lock:test") is True


class TestReleaseRedisLock:
    @patch(f"{_MOD}.redis.from_url")
    def test_deletes_key(self, mock_from_url):
        client = MagicMock()
        mock_from_url.return_value = client

        release_redis_lock("lock:test")

        client.delete.assert_called_once_with("lock:test")

    @patch(f"{_MOD}.redis.from_url")
    def test_error_is_logged(self, mock_from_url):
        client = MagicMock()
        client.delete.side_effect = redis.ConnectionError("down")
        mock_from_url.return_value = client

        with patch(f"{_MOD}.logger") as mock_logger:
            release_redis_lock("lock:test")

        mock_logger.warning.assert_called_once()
