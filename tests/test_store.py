"""Tests for quotagate/limiter/store.py — in-memory window store."""

from quotagate.limiter.store import MemoryWindowStore, new_version_token


class TestMemoryWindowStore:

    async def test_unknown_key_is_empty_and_not_stored(self, store):
        entry = await store.get_or_create("k")
        assert entry.key == "k"
        assert entry.timestamps == []
        assert entry.version is None
        assert len(store) == 0

    async def test_first_write_creates_entry(self, store):
        assert await store.compare_and_swap("k", None, [1.0]) is True
        entry = await store.get_or_create("k")
        assert entry.timestamps == [1.0]
        assert isinstance(entry.version, str)

    async def test_create_rejected_when_key_exists(self, store):
        await store.compare_and_swap("k", None, [1.0])
        assert await store.compare_and_swap("k", None, [2.0]) is False
        assert (await store.get_or_create("k")).timestamps == [1.0]

    async def test_stale_version_rejected(self, store):
        await store.compare_and_swap("k", None, [1.0])
        first = (await store.get_or_create("k")).version
        assert await store.compare_and_swap("k", first, [1.0, 2.0]) is True
        assert await store.compare_and_swap("k", first, [3.0]) is False
        assert (await store.get_or_create("k")).timestamps == [1.0, 2.0]

    async def test_every_write_gets_a_new_version(self, store):
        await store.compare_and_swap("k", None, [1.0])
        first = (await store.get_or_create("k")).version
        await store.compare_and_swap("k", first, [1.0])
        assert (await store.get_or_create("k")).version != first

    async def test_version_from_before_delete_rejected_after_recreate(self, store):
        await store.compare_and_swap("k", None, [])
        stale = (await store.get_or_create("k")).version
        assert await store.delete_if_empty("k") is True
        assert await store.compare_and_swap("k", None, [5.0]) is True

        assert await store.compare_and_swap("k", stale, [5.0, 6.0]) is False
        assert (await store.get_or_create("k")).timestamps == [5.0]

    async def test_version_from_before_reset_rejected_after_recreate(self, store):
        await store.compare_and_swap("k", None, [1.0])
        stale = (await store.get_or_create("k")).version
        await store.delete("k")
        await store.compare_and_swap("k", None, [2.0])

        assert await store.compare_and_swap("k", stale, [1.0, 3.0]) is False

    async def test_expected_version_on_missing_key_rejected(self, store):
        assert await store.compare_and_swap("k", new_version_token(), [1.0]) is False
        assert len(store) == 0

    async def test_snapshot_is_detached(self, store):
        await store.compare_and_swap("k", None, [1.0])
        entry = await store.get_or_create("k")
        entry.timestamps.append(99.0)
        assert (await store.get_or_create("k")).timestamps == [1.0]

    async def test_delete_if_empty(self, store):
        await store.compare_and_swap("full", None, [1.0])
        await store.compare_and_swap("empty", None, [])
        assert await store.delete_if_empty("full") is False
        assert await store.delete_if_empty("empty") is True
        assert await store.delete_if_empty("missing") is False
        assert await store.keys() == ["full"]

    async def test_delete(self, store):
        await store.compare_and_swap("k", None, [1.0])
        await store.delete("k")
        await store.delete("k")
        assert len(store) == 0

    async def test_close_is_noop(self):
        store = MemoryWindowStore()
        await store.close()


class TestVersionToken:

    def test_tokens_are_unique(self):
        assert len({new_version_token() for _ in range(100)}) == 100
