"""Tests for the JSON-file fallback store."""

import asyncio
import json
import time

import pytest
from filelock import FileLock, Timeout

from gustoflow.services.store import LocalStore, Predicate


@pytest.fixture
def store(tmp_path):
    """Unseeded store."""
    return LocalStore(tmp_path, seed={})


# ============== Seeding ==============

class TestSeeding:

    @pytest.mark.asyncio
    async def test_seeds_tables_on_first_use(self, local_store):
        assert not local_store.path_for("staff").exists()

        assert len(await local_store.select_all("staff")) == 4
        assert local_store.path_for("staff").exists()
        assert await local_store.select_all("customers") == []
        assert not local_store.path_for("customers").exists()

    @pytest.mark.asyncio
    async def test_first_write_lands_on_top_of_seed(self, local_store):
        await local_store.insert("tables", {"id": "t-13", "number": 13})
        assert len(await local_store.select_all("tables")) == 13

    @pytest.mark.asyncio
    async def test_does_not_overwrite_existing_files(self, tmp_path):
        first = LocalStore(tmp_path)
        await first.delete("staff", "id", "1")

        second = LocalStore(tmp_path)
        rows = await second.select_all("staff")
        assert "1" not in [row["id"] for row in rows]
        assert len(rows) == 3

    @pytest.mark.asyncio
    async def test_unreadable_file_reads_as_empty(self, store):
        store.path_for("tables").write_text("{broken", encoding="utf-8")
        assert await store.select_all("tables") == []


# ============== Reads and writes ==============

class TestActions:

    @pytest.mark.asyncio
    async def test_insert_then_select(self, store):
        await store.insert("tables", {"id": "t-1", "number": 1})
        await store.insert("tables", {"id": "t-2", "number": 2})

        rows = await store.select_all("tables", "ORDER BY number DESC")
        # Order clause is ignored: insertion order
        assert [row["id"] for row in rows] == ["t-1", "t-2"]

    @pytest.mark.asyncio
    async def test_insert_accepts_single_element_list(self, store):
        await store.insert("tables", [{"id": "t-1", "number": 1}])
        assert len(await store.select_all("tables")) == 1

    @pytest.mark.asyncio
    async def test_insert_rejects_batches(self, store):
        with pytest.raises(ValueError):
            await store.insert("tables", [{"id": "a"}, {"id": "b"}])

    @pytest.mark.asyncio
    async def test_file_holds_json_array(self, store):
        await store.insert("customers", {"phone": "555-1234", "name": "A"})
        data = json.loads(store.path_for("customers").read_text(encoding="utf-8"))
        assert data == [{"phone": "555-1234", "name": "A"}]

    @pytest.mark.asyncio
    async def test_select_single_missing_table(self, store):
        assert await store.select_single("orders", Predicate.by_id("x")) is None

    @pytest.mark.asyncio
    async def test_select_single_by_username_is_case_insensitive(self, store):
        await store.insert("staff", {"id": "1", "username": "Owner", "role": "OWNER", "name": "Admin"})
        row = await store.select_single("staff", Predicate.by_username("OWNER"))
        assert row["id"] == "1"

    @pytest.mark.asyncio
    async def test_select_single_by_phone(self, store):
        await store.insert("customers", {"phone": "555-0000", "name": "A"})
        await store.insert("customers", {"phone": "555-1234", "name": "B"})
        row = await store.select_single("customers", Predicate.by_phone("555-1234"))
        assert row["name"] == "B"

    @pytest.mark.asyncio
    async def test_update_merges_into_first_match_only(self, store):
        await store.insert("tables", {"id": "t-1", "number": 1, "status": "Available"})
        await store.insert("tables", {"id": "t-1", "number": 99, "status": "Available"})

        await store.update("tables", {"status": "Cooking"}, "id", "t-1")

        rows = await store.select_all("tables")
        assert rows[0] == {"id": "t-1", "number": 1, "status": "Cooking"}
        assert rows[1]["status"] == "Available"

    @pytest.mark.asyncio
    async def test_update_matches_phone_key(self, store):
        await store.insert("customers", {"phone": "555-1234", "name": "A"})
        await store.update("customers", {"name": "B"}, "phone", "555-1234")
        assert (await store.select_all("customers"))[0]["name"] == "B"

    @pytest.mark.asyncio
    async def test_update_without_match_is_noop(self, store):
        await store.insert("tables", {"id": "t-1", "number": 1})
        result = await store.update("tables", {"number": 5}, "id", "t-9")
        assert result == {"success": True}
        assert (await store.select_all("tables"))[0]["number"] == 1

    @pytest.mark.asyncio
    async def test_delete_removes_every_match(self, store):
        await store.insert("staff_pings", {"id": "p1"})
        await store.insert("staff_pings", {"id": "p1"})
        await store.insert("staff_pings", {"id": "p2"})

        await store.delete("staff_pings", "id", "p1")
        assert [row["id"] for row in await store.select_all("staff_pings")] == ["p2"]

    @pytest.mark.asyncio
    async def test_delete_by_phone(self, store):
        await store.insert("customers", {"phone": "555-1234", "name": "A"})
        await store.delete("customers", "phone", "555-1234")
        assert await store.select_all("customers") == []

    @pytest.mark.asyncio
    async def test_execute_and_binding(self, store):
        assert await store.execute("CREATE TABLE x (id TEXT)") == {"success": True}
        assert await store.check_binding() == {"success": True, "binding": False}

    @pytest.mark.asyncio
    async def test_clear_all(self, local_store):
        await local_store.delete("staff", "id", "1")
        local_store.clear_all()
        assert list(local_store.directory.glob("gusto_*.json")) == []
        assert len(await local_store.select_all("staff")) == 4

    @pytest.mark.asyncio
    async def test_unencodable_record_leaves_file_intact(self, store):
        await store.insert("stock_entries", {"id": "s1", "quantity": 1})
        with pytest.raises(TypeError):
            await store.insert("stock_entries", {"id": "s2", "quantity": object()})
        assert await store.select_all("stock_entries") == [{"id": "s1", "quantity": 1}]


# ============== Locking ==============

class TestLocking:

    @pytest.mark.asyncio
    async def test_lock_wait_keeps_event_loop_running(self, tmp_path):
        store = LocalStore(tmp_path, lock_timeout=1, seed={})
        gaps = []

        async def heartbeat():
            last = time.monotonic()
            while True:
                await asyncio.sleep(0.02)
                now = time.monotonic()
                gaps.append(now - last)
                last = now

        # Another holder of the table lock, as a second process would be
        with FileLock(str(store.path_for("orders")) + ".lock"):
            beat = asyncio.create_task(heartbeat())
            with pytest.raises(Timeout):
                await store.insert("orders", {"id": "o1"})
            beat.cancel()

        assert len(gaps) > 10
        assert max(gaps) < 0.5

    @pytest.mark.asyncio
    async def test_lock_released_after_write(self, store):
        await store.insert("orders", {"id": "o1"})
        with FileLock(str(store.path_for("orders")) + ".lock", timeout=0.5):
            pass


# ============== Predicate ==============

class TestPredicate:

    def test_unsupported_column(self):
        with pytest.raises(ValueError):
            Predicate("name", "x")

    def test_username_lowercased(self):
        assert Predicate.by_username("  Chef ").to_sql() == ("LOWER(username) = ?", ["chef"])

    def test_plain_column_sql(self):
        assert Predicate.by_phone("555").to_sql() == ("phone = ?", ["555"])
