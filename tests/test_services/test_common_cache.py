"""
通用缓存测试
"""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from laundrypro.services.common_cache import SimpleCache


@pytest.mark.asyncio
class TestSimpleCache:

    @pytest.fixture
    def redis_client(self):
        client = MagicMock()
        client.get = AsyncMock(return_value=None)
        client.setex = AsyncMock()
        client.delete = AsyncMock(return_value=1)
        return client

    @pytest.fixture
    def cache(self, redis_client):
        return SimpleCache(redis_client, key_prefix="coupon:")

    async def test_set_adds_prefix_and_ttl(self, cache, redis_client):
        result = await cache.set("available:tenant_a", [{"code": "SAVE50"}], ttl=60)

        assert result is True
        key, ttl, data = redis_client.setex.call_args.args
        assert key == "coupon:available:tenant_a"
        assert ttl == 60
        assert json.loads(data) == [{"code": "SAVE50"}]

    async def test_get_decodes_json(self, cache, redis_client):
        redis_client.get.return_value = '[{"code": "SAVE50"}]'

        assert await cache.get("available:tenant_a") == [{"code": "SAVE50"}]
        redis_client.get.assert_awaited_once_with("coupon:available:tenant_a")

    async def test_get_error_returns_none(self, cache, redis_client):
        redis_client.get.side_effect = ConnectionError("redis down")

        assert await cache.get("available:tenant_a") is None

    async def test_delete_pattern(self, cache, redis_client):
        async def _scan_iter(match):
            for key in ["coupon:available:tenant_a"]:
                yield key

        redis_client.scan_iter = _scan_iter

        deleted = await cache.delete_pattern("available:tenant_a")

        assert deleted == 1
        redis_client.delete.assert_awaited_once_with("coupon:available:tenant_a")

    async def test_without_redis_is_noop(self):
        cache = SimpleCache(key_prefix="coupon:")

        assert await cache.get("x") is None
        assert await cache.set("x", 1) is False
        assert await cache.delete_pattern("x") == 0
