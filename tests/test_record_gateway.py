from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from recommendable.config import Settings
from recommendable.recommender.record_gateway import RecordGateway, SqlRecordStore
from tests.conftest import BOOK, MOVIE


@pytest.mark.asyncio
async def test_fetch_preserves_given_order(record_gateway):
    rows = await record_gateway.fetch("Movie", [12, 10, 14, 11])

    assert [row.id for row in rows] == ["12", "10", "14", "11"]
    assert rows[0].attributes == {"name": "Movie 12"}


@pytest.mark.asyncio
async def test_fetch_empty_ids_does_not_query(record_gateway, record_store):
    assert await record_gateway.fetch("Movie", []) == []
    assert record_store.calls == []


@pytest.mark.asyncio
async def test_missing_ids_are_skipped(record_gateway):
    rows = await record_gateway.fetch("Movie", ["99", "13", "98", "10"])

    assert [row.id for row in rows] == ["13", "10"]


@pytest.mark.asyncio
async def test_duplicate_ids_queried_once(record_gateway, record_store):
    rows = await record_gateway.fetch("User", [2, "2", 1])

    assert [row.id for row in rows] == ["2", "1"]
    assert record_store.calls == [("User", ["2", "1"])]


@pytest.mark.asyncio
async def test_limit_and_offset_apply_to_ordered_rows(record_gateway):
    ids = [14, 99, 13, 12, 11, 10]

    first = await record_gateway.fetch("Movie", ids, limit=2)
    second = await record_gateway.fetch("Movie", ids, limit=2, offset=2)
    rest = await record_gateway.fetch("Movie", ids, limit=None, offset=4)
    past_end = await record_gateway.fetch("Movie", ids, limit=10, offset=50)

    assert [row.id for row in first] == ["14", "13"]
    assert [row.id for row in second] == ["12", "11"]
    assert [row.id for row in rest] == ["10"]
    assert past_end == []


@pytest.mark.asyncio
@pytest.mark.parametrize("limit,offset", [(-1, 0), (10, -1)])
async def test_invalid_page_rejected(record_gateway, limit, offset):
    with pytest.raises(ValueError):
        await record_gateway.fetch("Movie", [10], limit=limit, offset=offset)


def _mock_session(rows):
    result = MagicMock()
    result.mappings.return_value.all.return_value = rows
    db = MagicMock()
    db.execute = AsyncMock(return_value=result)
    return db


@pytest.mark.asyncio
async def test_sql_record_store_queries_by_id_set():
    db = _mock_session([{"id": 1, "email": "a@example.com"}, {"id": 3, "email": "c@example.com"}])
    store = SqlRecordStore(db, {"User": "users"})

    records = await store.fetch_by_ids("User", ["3", "1"])

    stmt = db.execute.call_args.args[0]
    compiled = stmt.compile()
    assert "FROM users" in str(compiled)
    assert list(compiled.params.values()) == [[3, 1]]
    assert [(record.kind, record.id, record.attributes) for record in records] == [
        ("User", "1", {"email": "a@example.com"}),
        ("User", "3", {"email": "c@example.com"}),
    ]


@pytest.mark.asyncio
async def test_sql_record_store_keeps_string_ids():
    db = _mock_session([])
    store = SqlRecordStore(db, {"Movie": "movies"}, integer_ids=False)

    await store.fetch_by_ids("Movie", ["10", "abc"])

    compiled = db.execute.call_args.args[0].compile()
    assert list(compiled.params.values()) == [["10", "abc"]]


@pytest.mark.asyncio
async def test_sql_record_store_unknown_kind():
    store = SqlRecordStore(_mock_session([]), {"User": "users"})

    with pytest.raises(ValueError):
        await store.fetch_by_ids("Movie", ["10"])


@pytest.mark.asyncio
async def test_sql_record_store_propagates_database_errors():
    db = MagicMock()
    db.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down")))
    store = SqlRecordStore(db, {"User": "users"})

    with pytest.raises(OperationalError):
        await store.fetch_by_ids("User", ["1"])


def test_sql_record_store_from_settings():
    config = Settings()
    config.rater_class = "Member"
    config.rater_table = "members"
    config.ratable_classes = (MOVIE, BOOK)

    store = SqlRecordStore.from_settings(MagicMock(), config)

    assert store.tables == {"Member": "members", "Movie": "movies", "Book": "library_books"}


@pytest.mark.asyncio
async def test_gateway_with_sql_store_reorders_rows():
    db = _mock_session([{"id": 1}, {"id": 2}, {"id": 3}])
    gateway = RecordGateway(SqlRecordStore(db, {"User": "users"}))

    rows = await gateway.fetch("User", [3, 1, 2], limit=2)

    assert [row.id for row in rows] == ["3", "1"]


@pytest.mark.asyncio
async def test_sql_record_store_skips_non_integer_ids():
    db = _mock_session([{"id": 7}])
    store = SqlRecordStore(db, {"User": "users"})

    records = await store.fetch_by_ids("User", ["--5", "²", "abc", "7", "-3"])

    compiled = db.execute.call_args.args[0].compile()
    assert list(compiled.params.values()) == [[7, -3]]
    assert [record.id for record in records] == ["7"]


@pytest.mark.asyncio
async def test_sql_record_store_only_non_integer_ids_does_not_query():
    db = _mock_session([])
    store = SqlRecordStore(db, {"User": "users"})

    assert await store.fetch_by_ids("User", ["--5", "²"]) == []
    db.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_gateway_with_sql_store_ignores_odd_members():
    db = _mock_session([{"id": 2}, {"id": 1}])
    gateway = RecordGateway(SqlRecordStore(db, {"User": "users"}))

    rows = await gateway.fetch("User", ["1", "--5", "2"])

    assert [row.id for row in rows] == ["1", "2"]
