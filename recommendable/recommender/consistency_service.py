"""
Consistency Service
===================

Giữ score store nhất quán khi rater bị xoá hoặc một recommendation bị rút lại.

remove_from_recommendable (gọi khi xoá rater) có 2 "track":
- Rater là MEMBER trong sets của entity khác (similarity của rater khác,
  liked_by/disliked_by của items) -> ZREM / SREM
- Rater là OWNER của sets (similarity, liked, disliked, hidden, bookmarked,
  recommended) -> DEL

Tất cả lệnh được gửi trong 1 pipeline (1 round trip).
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Union

from recommendable.recommender.key_schema import RATER_OWNED_CLASS_KINDS, WILDCARD, KeySchema
from recommendable.recommender.score_store import BatchOperation, ScoreStore
from recommendable.schemas.record import ClassRef, RatableClass

logger = logging.getLogger(__name__)

RaterId = Union[int, str]


@dataclass(frozen=True)
class TeardownSummary:
    """
    Kết quả teardown một rater.

    Attributes:
        rater_id: Rater ID đã bị xoá
        set_removals: Số SREM (liked_by / disliked_by sets)
        ranked_set_removals: Số ZREM (similarity sets của raters khác)
        deleted_keys: Số keys rater sở hữu được queue DEL
    """
    rater_id: str
    set_removals: int
    ranked_set_removals: int
    deleted_keys: int

    @property
    def total_operations(self) -> int:
        return self.set_removals + self.ranked_set_removals + self.deleted_keys


class ConsistencyService:
    """Teardown khi xoá rater và rút lại recommendation."""

    def __init__(
        self,
        score_store: ScoreStore,
        key_schema: Optional[KeySchema] = None,
        ratable_classes: Iterable[RatableClass] = ()
    ):
        """
        Khởi tạo ConsistencyService.

        Args:
            score_store: ScoreStore (Redis)
            key_schema: KeySchema (default: không namespace)
            ratable_classes: Registry các ratable classes (duyệt khi teardown)
        """
        self.score_store = score_store
        self.key_schema = key_schema or KeySchema()
        self.ratable_classes = tuple(ratable_classes)

        logger.info(
            f"ConsistencyService initialized: "
            f"namespace={self.key_schema.namespace!r}, "
            f"ratable_classes={[klass.name for klass in self.ratable_classes]}"
        )

    def unrecommend(self, rater_id: RaterId, klass: ClassRef, item_id: Union[int, str]) -> bool:
        """
        Xoá item khỏi recommended set của rater.

        Idempotent: luôn trả về True kể cả khi item không có trong set.
        """
        key = self.key_schema.recommended_set_for(klass, rater_id)
        self.score_store.remove_member(key, item_id)
        logger.debug(f"Unrecommended {item_id} from {key}")
        return True

    def _fan_out_keys(self, rater_id: RaterId):
        """Phase 1: keys có thể chứa rater_id như một member."""
        own_similarity_key = self.key_schema.similarity_set_for(rater_id)
        ranked_sets = self.score_store.keys_matching(self.key_schema.similarity_set_for(WILDCARD))
        ranked_sets.discard(own_similarity_key)

        sets: Set[str] = set()
        for klass in self.ratable_classes:
            sets |= self.score_store.keys_matching(self.key_schema.liked_by_set_for(klass, WILDCARD))
            sets |= self.score_store.keys_matching(self.key_schema.disliked_by_set_for(klass, WILDCARD))

        return sorted(sets), sorted(ranked_sets)

    def owned_keys(self, rater_id: RaterId) -> List[str]:
        """Phase 2: mọi key do rater sở hữu (không cần wildcard)."""
        keys = [self.key_schema.similarity_set_for(rater_id)]
        for klass in self.ratable_classes:
            for kind in RATER_OWNED_CLASS_KINDS:
                keys.append(self.key_schema.key_for(kind, rater_id, klass))
        return keys

    def remove_from_recommendable(self, rater_id: RaterId) -> TeardownSummary:
        """
        Xoá rater khỏi mọi set trong score store.

        Gọi đồng bộ một lần khi rater bị xoá. Gọi lại lần hai là no-op.
        StoreError từ pipeline được raise cho caller retry (không rollback).

        Args:
            rater_id: Rater ID

        Returns:
            TeardownSummary
        """
        sets, ranked_sets = self._fan_out_keys(rater_id)
        keys = self.owned_keys(rater_id)

        # Phase 3: queue tất cả trong 1 batch
        operations = [BatchOperation.remove_set_member(key, rater_id) for key in sets]
        operations += [BatchOperation.remove_ranked_member(key, rater_id) for key in ranked_sets]
        operations.append(BatchOperation.delete(*keys))

        # Phase 4: 1 round trip
        self.score_store.execute_batch(operations)

        summary = TeardownSummary(
            rater_id=str(rater_id),
            set_removals=len(sets),
            ranked_set_removals=len(ranked_sets),
            deleted_keys=len(keys)
        )
        logger.info(
            f"Removed rater {rater_id} from recommendable: "
            f"srem={summary.set_removals}, zrem={summary.ranked_set_removals}, "
            f"del={summary.deleted_keys}"
        )
        return summary
