import asyncio

import pytest

from core.errors import ConfigurationError, SizeLimitExceeded, ValidationError
from core.models import MAX_VALUE_BYTES, StoreConfig
from core.store import SessionStore, serialized_size


def _store(clock, **kwargs):
    return SessionStore(StoreConfig(**kwargs), clock=clock)


@pytest.mark.asyncio
async def test_set_and_get_roundtrip(clock):
    s = _store(clock)

    key = await s.set("a", {"inputs": {"q": "x"}})
    assert key == "a"
    assert await s.get("a") == {"inputs": {"q": "x"}}


@pytest.mark.asyncio
async def test_get_missing_returns_none(clock):
    s = _store(clock)
    assert await s.get("nope") is None


@pytest.mark.asyncio
async def test_set_without_key_generates_one(clock):
    s = _store(clock)

    key = await s.set(None, "v")
    assert isinstance(key, str)
    assert len(key) == 64
    assert await s.get(key) == "v"


@pytest.mark.asyncio
async def test_generated_keys_are_unique(clock):
    s = _store(clock, max_entries=10_000)

    keys = {await s.set(None, i) for i in range(10_000)}
    assert len(keys) == 10_000
    assert len(s) == 10_000


@pytest.mark.asyncio
async def test_generated_key_skips_existing(clock, monkeypatch):
    s = _store(clock)
    await s.set("dup", 1)

    drawn = iter(["dup", "fresh"])
    monkeypatch.setattr(s, "generate_key", lambda: next(drawn))

    assert await s.set(None, 2) == "fresh"
    assert await s.get("dup") == 1


@pytest.mark.asyncio
async def test_entry_expires_at_ttl_boundary(clock):
    s = _store(clock)
    await s.set("a", "x", ttl_seconds=10)

    clock.advance(9)
    assert await s.get("a") == "x"

    clock.advance(1)
    assert await s.get("a") is None


@pytest.mark.asyncio
async def test_default_ttl_applies(clock):
    s = _store(clock, default_ttl_seconds=30)
    await s.set("a", "x")

    clock.advance(29)
    assert await s.exists("a") is True

    clock.advance(1)
    assert await s.exists("a") is False


@pytest.mark.asyncio
async def test_expiry_with_real_clock():
    s = SessionStore(StoreConfig())
    await s.set("a", "x", ttl_seconds=0.1)

    await asyncio.sleep(0.15)
    assert await s.get("a") is None


@pytest.mark.asyncio
async def test_lazy_expiry_removes_entry_and_counts_miss(clock):
    s = _store(clock)
    await s.set("a", "x", ttl_seconds=5)

    clock.advance(5)
    assert await s.get("a") is None

    stats = await s.stats()
    assert stats.entry_count == 0
    assert stats.misses == 1
    assert stats.hits == 0
    assert stats.deletes == 1


@pytest.mark.asyncio
async def test_touch_extends_ttl(clock):
    s = _store(clock)
    await s.set("a", "x", ttl_seconds=100)

    clock.advance(50)
    assert await s.touch("a", 200) is True

    clock.advance(100)  # past the original expiry
    assert await s.get("a") == "x"

    clock.advance(100)
    assert await s.get("a") is None


@pytest.mark.asyncio
async def test_touch_missing_or_expired_returns_false(clock):
    s = _store(clock)
    assert await s.touch("fake") is False

    await s.set("a", "x", ttl_seconds=1)
    clock.advance(1)
    assert await s.touch("a") is False
    assert len(s) == 0


@pytest.mark.asyncio
async def test_touch_does_not_change_value_or_hit_counters(clock):
    s = _store(clock)
    await s.set("a", {"n": 1})

    assert await s.touch("a") is True

    stats = await s.stats()
    assert stats.hits == 0
    assert stats.misses == 0
    assert await s.get("a") == {"n": 1}


@pytest.mark.asyncio
async def test_set_existing_key_preserves_created_at(clock):
    s = _store(clock)
    await s.set("a", 1)
    created = s._entries["a"].created_at

    clock.advance(10)
    await s.set("a", 2, ttl_seconds=5)

    entry = s._entries["a"]
    assert entry.created_at == created
    assert entry.updated_at == clock.now()
    assert entry.expires_at == clock.now() + 5
    assert await s.get("a") == 2


@pytest.mark.asyncio
async def test_reinsert_after_delete_gets_fresh_created_at(clock):
    s = _store(clock)
    await s.set("a", 1)
    await s.delete("a")

    clock.advance(10)
    await s.set("a", 1)

    assert s._entries["a"].created_at == clock.now()


@pytest.mark.asyncio
async def test_set_on_expired_key_creates_fresh_entry(clock):
    s = _store(clock)
    await s.set("a", 1, ttl_seconds=5)

    clock.advance(10)  # expired, but nothing has read or swept it
    await s.set("a", 2)

    assert s._entries["a"].created_at == clock.now()
    assert await s.get("a") == 2

    stats = await s.stats()
    assert stats.evictions == 0
    assert stats.entry_count == 1


@pytest.mark.asyncio
async def test_set_on_expired_key_at_capacity_does_not_evict_live_entry(clock):
    s = _store(clock, max_entries=2)
    await s.set("old", 1, ttl_seconds=5)
    await s.set("live", 2, ttl_seconds=100)

    clock.advance(10)
    await s.set("old", 3)

    assert await s.get("live") == 2
    assert await s.get("old") == 3
    assert (await s.stats()).evictions == 0


@pytest.mark.asyncio
async def test_delete_reports_removal(clock):
    s = _store(clock)
    await s.set("a", 1)

    assert await s.delete("a") is True
    assert await s.delete("a") is False
    assert await s.get("a") is None

    stats = await s.stats()
    assert stats.deletes == 1


@pytest.mark.asyncio
async def test_clear_empties_store_without_counting_deletes(clock):
    s = _store(clock)
    for k in ("a", "b", "c"):
        await s.set(k, k)

    await s.clear()

    stats = await s.stats()
    assert stats.entry_count == 0
    assert stats.deletes == 0
    assert stats.sets == 3


@pytest.mark.asyncio
async def test_values_are_copied_in_and_out(clock):
    s = _store(clock)
    original = {"inputs": {"n": 1}}
    await s.set("a", original)

    original["inputs"]["n"] = 2
    fetched = await s.get("a")
    assert fetched == {"inputs": {"n": 1}}

    fetched["inputs"]["n"] = 3
    assert await s.get("a") == {"inputs": {"n": 1}}


@pytest.mark.asyncio
async def test_size_limit_rejects_and_leaves_store_unchanged(clock):
    s = _store(clock)
    big = "x" * (MAX_VALUE_BYTES + 1)

    with pytest.raises(SizeLimitExceeded) as exc:
        await s.set("a", big)

    assert exc.value.limit == MAX_VALUE_BYTES
    assert await s.exists("a") is False
    stats = await s.stats()
    assert stats.sets == 0
    assert stats.entry_count == 0


@pytest.mark.asyncio
async def test_size_limit_rejection_keeps_previous_value(clock):
    s = _store(clock)
    await s.set("a", "small")

    with pytest.raises(SizeLimitExceeded):
        await s.set("a", "x" * (MAX_VALUE_BYTES + 1))

    assert await s.get("a") == "small"


@pytest.mark.asyncio
async def test_value_exactly_at_limit_is_accepted(clock):
    s = _store(clock)
    value = "x" * (MAX_VALUE_BYTES - 2)  # plus two quote characters
    assert serialized_size(value) == MAX_VALUE_BYTES

    await s.set("a", value)
    assert await s.exists("a") is True


def test_serialized_size_counts_utf8_bytes():
    assert serialized_size("é") == 4  # quotes + two bytes


@pytest.mark.asyncio
async def test_non_serializable_value_rejected(clock):
    s = _store(clock)

    with pytest.raises(ValidationError):
        await s.set("a", {"bad": object()})

    assert len(s) == 0


@pytest.mark.asyncio
async def test_lone_surrogate_rejected_as_validation_error(clock):
    s = _store(clock)

    with pytest.raises(ValidationError):
        await s.set("a", "\ud800")

    assert len(s) == 0
    assert (await s.stats()).sets == 0


@pytest.mark.asyncio
async def test_non_positive_ttl_rejected(clock):
    s = _store(clock)

    with pytest.raises(ValidationError):
        await s.set("a", 1, ttl_seconds=0)
    with pytest.raises(ValidationError):
        await s.touch("a", -1)


@pytest.mark.asyncio
async def test_stats_hit_rate(clock):
    s = _store(clock, max_entries=5)

    stats = await s.stats()
    assert stats.hit_rate == 0
    assert stats.max_entries == 5

    await s.set("a", 1)
    await s.get("a")
    await s.get("a")
    await s.get("a")
    await s.get("missing")

    stats = await s.stats()
    assert stats.hits == 3
    assert stats.misses == 1
    assert stats.hit_rate == pytest.approx(0.75)


@pytest.mark.asyncio
async def test_exists_counts_like_get(clock):
    s = _store(clock)
    await s.set("a", 1)

    assert await s.exists("a") is True
    assert await s.exists("fake") is False

    stats = await s.stats()
    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.hit_rate == 0.5


@pytest.mark.asyncio
async def test_concurrent_inserts_never_exceed_capacity(clock):
    s = _store(clock, max_entries=10)

    await asyncio.gather(*(s.set(f"k{i}", i) for i in range(50)))

    stats = await s.stats()
    assert stats.entry_count == 10
    assert stats.evictions == 40
    assert stats.sets == 50


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_entries": 0},
        {"max_entries": -1},
        {"max_entries": True},
        {"default_ttl_seconds": 0},
        {"eviction_policy": "fifo"},
        {"max_value_bytes": 0},
    ],
)
def test_invalid_config_is_fatal(kwargs):
    with pytest.raises(ConfigurationError):
        SessionStore(StoreConfig(**kwargs))


def test_defaults():
    s = SessionStore()
    assert s.max_entries == 10_000
    assert s.default_ttl_seconds == 24 * 60 * 60
    assert s.eviction_policy == "lru"
