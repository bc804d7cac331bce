"""
Score Store
===========

Wrapper quanh Redis client cho các sorted set / set của recommendable.

- range_descending: ZREVRANGE 0 -1 (toàn bộ set, score cao nhất ở đầu)
- cardinality / set_cardinality: ZCARD / SCARD
- keys_matching: SCAN MATCH (không dùng KEYS để tránh block Redis)
- remove_member: ZREM (idempotent)
- execute_batch: gửi nhiều SREM/ZREM/DEL trong 1 pipeline (1 round trip)

Redis client do host tạo và quản lý vòng đời; ScoreStore không connect/close.
Mọi redis.RedisError được wrap thành StoreError.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Set, Tuple, Union

import redis

from recommendable.recommender.exceptions import StoreError

logger = logging.getLogger(__name__)

Member = Union[int, str]


class BatchOp(str, Enum):
    REMOVE_SET_MEMBER = "srem"
    REMOVE_RANKED_MEMBER = "zrem"
    DELETE_KEYS = "del"


@dataclass(frozen=True)
class BatchOperation:
    """
    Một lệnh trong batch teardown.

    Attributes:
        op: Loại lệnh (SREM / ZREM / DEL)
        keys: Key(s) bị tác động (DEL có thể nhiều key)
        member: Member cần xoá (chỉ với SREM / ZREM)
    """
    op: BatchOp
    keys: Tuple[str, ...]
    member: Optional[str] = None

    @classmethod
    def remove_set_member(cls, key: str, member: Member) -> "BatchOperation":
        return cls(BatchOp.REMOVE_SET_MEMBER, (key,), str(member))

    @classmethod
    def remove_ranked_member(cls, key: str, member: Member) -> "BatchOperation":
        return cls(BatchOp.REMOVE_RANKED_MEMBER, (key,), str(member))

    @classmethod
    def delete(cls, *keys: str) -> "BatchOperation":
        return cls(BatchOp.DELETE_KEYS, tuple(keys))


def _decode(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


class ScoreStore:
    """
    Truy cập sorted-score store (Redis) cho recommender và teardown.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        scan_count: int = 1000,
        batch_transaction: bool = True
    ):
        """
        Khởi tạo ScoreStore.

        Args:
            redis_client: Redis client dùng chung toàn process (inject từ host)
            scan_count: COUNT hint cho SCAN
            batch_transaction: Bọc batch trong MULTI/EXEC
        """
        self.redis_client = redis_client
        self.scan_count = scan_count
        self.batch_transaction = batch_transaction

        logger.info(
            f"ScoreStore initialized: "
            f"scan_count={scan_count}, batch_transaction={batch_transaction}"
        )

    def _call(self, operation: str, key: Optional[str], func: Callable, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except redis.RedisError as e:
            logger.error(f"Redis {operation} failed for key '{key}': {e}")
            raise StoreError(operation, key, str(e)) from e

    def range_descending(
        self,
        key: str,
        with_scores: bool = False
    ) -> Union[List[str], List[Tuple[str, float]]]:
        """
        Lấy toàn bộ members của sorted set, score giảm dần.

        Args:
            key: Sorted set key
            with_scores: Trả về (member, score) thay vì chỉ member

        Returns:
            List member IDs (hoặc list (member, score)); rỗng nếu key không tồn tại
        """
        result = self._call(
            "zrevrange", key, self.redis_client.zrevrange,
            key, 0, -1, withscores=with_scores
        )
        logger.debug(f"zrevrange {key}: {len(result)} members")

        if with_scores:
            return [(_decode(member), float(score)) for member, score in result]
        return [_decode(member) for member in result]

    def cardinality(self, key: str) -> int:
        """Số member trong sorted set (0 nếu key không tồn tại)."""
        return int(self._call("zcard", key, self.redis_client.zcard, key))

    def set_cardinality(self, key: str) -> int:
        """Số member trong set thường (0 nếu key không tồn tại)."""
        return int(self._call("scard", key, self.redis_client.scard, key))

    def keys_matching(self, pattern: str) -> Set[str]:
        """
        Enumerate các key match glob pattern bằng SCAN.

        Args:
            pattern: Glob pattern (ví dụ "similarity:*")

        Returns:
            Set of key strings
        """
        def scan() -> Set[str]:
            return {
                _decode(key)
                for key in self.redis_client.scan_iter(match=pattern, count=self.scan_count)
            }

        keys = self._call("scan", pattern, scan)
        logger.debug(f"scan {pattern}: {len(keys)} keys")
        return keys

    def remove_member(self, key: str, member: Member) -> None:
        """Xoá member khỏi sorted set. No-op nếu member/key không tồn tại."""
        self._call("zrem", key, self.redis_client.zrem, key, str(member))

    def execute_batch(self, operations: Iterable[BatchOperation]) -> List[Any]:
        """
        Gửi tất cả operations trong một pipeline (1 network round trip).

        Không rollback; với batch_transaction=True Redis áp dụng MULTI/EXEC
        nên batch được apply toàn bộ hoặc không gì cả.

        Args:
            operations: Các BatchOperation

        Returns:
            List kết quả từng lệnh (theo thứ tự queue)
        """
        operations = [op for op in operations if op.keys]
        if not operations:
            return []

        def run() -> List[Any]:
            with self.redis_client.pipeline(transaction=self.batch_transaction) as pipe:
                for operation in operations:
                    if operation.op is BatchOp.REMOVE_SET_MEMBER:
                        pipe.srem(operation.keys[0], operation.member)
                    elif operation.op is BatchOp.REMOVE_RANKED_MEMBER:
                        pipe.zrem(operation.keys[0], operation.member)
                    else:
                        pipe.delete(*operation.keys)
                return pipe.execute()

        results = self._call("pipeline", None, run)
        logger.debug(f"Executed batch of {len(operations)} operations")
        return results
