from typing import Dict, List

import pytest

from recommendable.recommender.consistency_service import ConsistencyService
from recommendable.recommender.key_schema import KeySchema
from recommendable.recommender.record_gateway import RecordGateway
from recommendable.recommender.recommender_service import RecommenderService
from recommendable.recommender.score_store import ScoreStore
from recommendable.schemas.record import RatableClass, RecordResponse
from tests.redis_mock import StatefulRedisMock

MOVIE = RatableClass(name="Movie")
BOOK = RatableClass(name="Book", table="library_books")


class InMemoryRecordStore:
    """
    Record store giả: trả rows theo thứ tự ngược với thứ tự lưu
    (giống database trả về thứ tự tuỳ ý).
    """

    def __init__(self, records: Dict[str, List[int]]):
        self.records = {
            kind: {str(record_id): RecordResponse(kind=kind, id=str(record_id), attributes={"name": f"{kind} {record_id}"})
                   for record_id in ids}
            for kind, ids in records.items()
        }
        self.calls: List[tuple] = []

    async def fetch_by_ids(self, kind: str, ids: List[str]) -> List[RecordResponse]:
        self.calls.append((kind, list(ids)))
        rows = self.records.get(kind, {})
        return [rows[record_id] for record_id in sorted(ids, reverse=True) if record_id in rows]


@pytest.fixture
def redis_mock():
    return StatefulRedisMock()


@pytest.fixture
def key_schema():
    return KeySchema()


@pytest.fixture
def ratable_classes():
    return (MOVIE, BOOK)


@pytest.fixture
def score_store(redis_mock):
    return ScoreStore(redis_mock, scan_count=10)


@pytest.fixture
def record_store():
    return InMemoryRecordStore({
        "User": [1, 2, 3, 4, 5, 6],
        "Movie": [10, 11, 12, 13, 14],
        "Book": [20, 21],
    })


@pytest.fixture
def record_gateway(record_store):
    return RecordGateway(record_store)


@pytest.fixture
def recommender(score_store, record_gateway, key_schema, ratable_classes):
    return RecommenderService(
        score_store,
        record_gateway,
        key_schema=key_schema,
        ratable_classes=ratable_classes,
        rater_class="User"
    )


@pytest.fixture
def consistency(score_store, key_schema, ratable_classes):
    return ConsistencyService(score_store, key_schema=key_schema, ratable_classes=ratable_classes)
