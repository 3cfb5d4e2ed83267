"""
Tests for the per-wallet Redis lock.
"""
import pytest

from app.core.config import settings
from app.core.exceptions import ResourceLockedError
from app.core.locks import wallet_lock, wallet_lock_key


@pytest.mark.unit
def test_lock_key_format():
    assert wallet_lock_key(42) == "wallet_lock:42"


@pytest.mark.unit
async def test_lock_held_inside_block_and_released_after(fake_redis):
    async with wallet_lock(7) as token:
        assert await fake_redis.get("wallet_lock:7") == token
        assert fake_redis.ttl_of("wallet_lock:7") == settings.WALLET_LOCK_TTL_SECONDS

    assert await fake_redis.get("wallet_lock:7") is None


@pytest.mark.unit
async def test_second_holder_is_refused(fake_redis):
    async with wallet_lock(7):
        with pytest.raises(ResourceLockedError) as exc_info:
            async with wallet_lock(7):
                pass

    assert exc_info.value.status_code == 409
    assert exc_info.value.details["retry_after_seconds"] == settings.WALLET_LOCK_TTL_SECONDS


@pytest.mark.unit
async def test_different_wallets_do_not_block_each_other(fake_redis):
    async with wallet_lock(1):
        async with wallet_lock(2, ttl_seconds=5):
            assert fake_redis.ttl_of("wallet_lock:2") == 5


@pytest.mark.unit
async def test_lock_released_when_block_raises(fake_redis):
    with pytest.raises(RuntimeError):
        async with wallet_lock(3):
            raise RuntimeError("boom")

    assert await fake_redis.get("wallet_lock:3") is None


@pytest.mark.unit
async def test_foreign_lock_is_not_deleted(fake_redis):
    async with wallet_lock(5):
        # Lock expired and another request took it over
        await fake_redis.set("wallet_lock:5", "someone-else")

    assert await fake_redis.get("wallet_lock:5") == "someone-else"


@pytest.mark.unit
async def test_release_is_one_compare_and_delete(fake_redis):
    async with wallet_lock(9):
        pass

    assert len(fake_redis.scripts) == 1
    script = fake_redis.scripts[0]
    assert "redis.call('get', KEYS[1]) == ARGV[1]" in script
    assert "redis.call('del', KEYS[1])" in script
