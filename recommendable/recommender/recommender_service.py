"""
Recommender Service
===================

Public query surface:
- similar_raters: raters giống nhất với rater (theo similarity score)
- recommended_for: items được recommend cho rater theo từng ratable class

Flow: ScoreStore (ranked IDs) -> RecordGateway (rows theo đúng thứ tự rank).
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Union

from recommendable.recommender.key_schema import KeySchema
from recommendable.recommender.record_gateway import RecordGateway, validate_page
from recommendable.recommender.score_store import ScoreStore
from recommendable.schemas.record import ClassRef, RatableClass, RecordResponse, class_name_of

logger = logging.getLogger(__name__)

RaterId = Union[int, str]


class RecommenderService:
    """
    Đọc similarity / recommended sets và materialize rows.
    """

    def __init__(
        self,
        score_store: ScoreStore,
        record_gateway: RecordGateway,
        key_schema: Optional[KeySchema] = None,
        ratable_classes: Iterable[RatableClass] = (),
        rater_class: str = "User",
        rated_anything: Optional[Callable[[RaterId], bool]] = None
    ):
        """
        Khởi tạo RecommenderService.

        Args:
            score_store: ScoreStore (Redis)
            record_gateway: RecordGateway (record store)
            key_schema: KeySchema (default: không namespace)
            ratable_classes: Registry các ratable classes
            rater_class: Entity kind của rater trong record store
            rated_anything: Predicate "rater đã rate gì chưa" (default: kiểm tra liked/disliked sets)
        """
        self.score_store = score_store
        self.record_gateway = record_gateway
        self.key_schema = key_schema or KeySchema()
        self.ratable_classes = tuple(ratable_classes)
        self.rater_class = rater_class
        self._rated_anything = rated_anything

        logger.info(
            f"RecommenderService initialized: "
            f"rater_class={rater_class}, "
            f"ratable_classes={[klass.name for klass in self.ratable_classes]}"
        )

    async def similar_raters(
        self,
        rater_id: RaterId,
        limit: Optional[int] = 10,
        offset: int = 0
    ) -> List[RecordResponse]:
        """
        Lấy danh sách raters giống rater nhất, sắp xếp theo similarity giảm dần.

        Args:
            rater_id: Rater ID
            limit: Số raters trả về (default: 10)
            offset: Bỏ qua bao nhiêu raters đầu

        Returns:
            List of RecordResponse (rater rows)
        """
        validate_page(limit, offset)

        key = self.key_schema.similarity_set_for(rater_id)
        ids = self.score_store.range_descending(key)
        ids = [member for member in ids if member != str(rater_id)]

        logger.debug(f"Similar raters for {rater_id}: {len(ids)} ranked ids")
        return await self.record_gateway.fetch(self.rater_class, ids, limit=limit, offset=offset)

    def rated_anything(self, rater_id: RaterId) -> bool:
        """
        Rater đã like/dislike item nào chưa (trên mọi ratable class).

        Dùng predicate inject từ host nếu có.
        """
        if self._rated_anything is not None:
            return bool(self._rated_anything(rater_id))

        for klass in self.ratable_classes:
            if self.score_store.set_cardinality(self.key_schema.liked_set_for(klass, rater_id)) > 0:
                return True
            if self.score_store.set_cardinality(self.key_schema.disliked_set_for(klass, rater_id)) > 0:
                return True
        return False

    async def recommended_for(
        self,
        rater_id: RaterId,
        klass: ClassRef,
        limit: Optional[int] = 10,
        offset: int = 0
    ) -> List[RecordResponse]:
        """
        Lấy recommendations của rater cho một ratable class.

        Chỉ items có score > 0 mới được trả về (score <= 0 vẫn nằm trong
        Redis nhưng bị lọc khi đọc).

        Args:
            rater_id: Rater ID
            klass: Ratable class (RatableClass hoặc class name)
            limit: Số items trả về (default: 10)
            offset: Bỏ qua bao nhiêu items đầu

        Returns:
            List of RecordResponse (item rows), score cao nhất ở đầu
        """
        validate_page(limit, offset)

        class_name = class_name_of(klass)
        key = self.key_schema.recommended_set_for(class_name, rater_id)

        if not self.rated_anything(rater_id) or self.score_store.cardinality(key) == 0:
            logger.debug(f"No recommendations for rater {rater_id} in {class_name}")
            return []

        scored = self.score_store.range_descending(key, with_scores=True)
        ids = [member for member, score in scored if score > 0]

        logger.debug(
            f"Recommended {class_name} for {rater_id}: "
            f"{len(ids)}/{len(scored)} ids with positive score"
        )
        return await self.record_gateway.fetch(class_name, ids, limit=limit, offset=offset)

    async def recommendations(
        self,
        rater_id: RaterId,
        limit: Optional[int] = 10
    ) -> Dict[str, List[RecordResponse]]:
        """
        Recommendations cho mọi ratable class đã đăng ký (theo thứ tự registry).

        Returns:
            Dict class name -> list of item rows
        """
        results = {}
        for klass in self.ratable_classes:
            results[klass.name] = await self.recommended_for(rater_id, klass, limit=limit)
        return results
