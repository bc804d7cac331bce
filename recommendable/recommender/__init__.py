"""
Core recommender logic package.

Ý tưởng cấu trúc:
- key_schema.py: mapping (kind, owner, class) -> Redis key
- score_store.py: wrapper cho sorted-set store (Redis) + batch pipeline
- record_gateway.py: materialize rows từ record store theo đúng thứ tự rank
- recommender_service.py: similar_raters / recommended_for
- consistency_service.py: unrecommend / remove_from_recommendable
"""

from recommendable.recommender.exceptions import StoreError
from recommendable.recommender.key_schema import KeyKind, KeySchema
from recommendable.recommender.score_store import BatchOperation, BatchOp, ScoreStore
from recommendable.recommender.record_gateway import RecordGateway, SqlRecordStore
from recommendable.recommender.recommender_service import RecommenderService
from recommendable.recommender.consistency_service import ConsistencyService, TeardownSummary

__all__ = [
    "StoreError",
    "KeyKind",
    "KeySchema",
    "BatchOperation",
    "BatchOp",
    "ScoreStore",
    "RecordGateway",
    "SqlRecordStore",
    "RecommenderService",
    "ConsistencyService",
    "TeardownSummary",
]
