"""
Record Gateway
==============

Materialize rows từ record store theo đúng thứ tự ID truyền vào.

Record store trả rows theo thứ tự tuỳ ý của nó, nên gateway:
1. Query đúng các rows có id trong danh sách
2. Tạo mapping id -> row
3. Trả về theo thứ tự IDs ban đầu (id không tìm thấy thì bỏ qua)
4. Áp dụng offset/limit trên danh sách ĐÃ sắp xếp

Record store chỉ cần một method:
    async fetch_by_ids(kind: str, ids: List[str]) -> List[RecordResponse]
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Union

from sqlalchemy import column, literal_column, select, table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from recommendable.config import Settings
from recommendable.schemas.record import RecordResponse

logger = logging.getLogger(__name__)

RecordId = Union[int, str]

INTEGER_ID_RE = re.compile(r"-?[0-9]+")


def validate_page(limit: Optional[int], offset: int) -> None:
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")


class SqlRecordStore:
    """
    Record store mặc định: đọc rows từ SQL database qua AsyncSession.

    Mỗi entity kind (rater class hoặc ratable class) map tới một table có
    cột primary key "id".
    """

    def __init__(
        self,
        db: AsyncSession,
        tables: Dict[str, str],
        integer_ids: bool = True
    ):
        """
        Khởi tạo SqlRecordStore.

        Args:
            db: Database session (host quản lý vòng đời)
            tables: Mapping kind -> table name
            integer_ids: Primary key là số nguyên: convert "42" -> 42, bỏ qua ID không phải số
        """
        self.db = db
        self.tables = dict(tables)
        self.integer_ids = integer_ids

    @classmethod
    def from_settings(cls, db: AsyncSession, config: Settings, integer_ids: bool = True) -> "SqlRecordStore":
        tables = {config.rater_class: config.rater_table}
        for klass in config.ratable_classes:
            tables[klass.name] = klass.table_name
        return cls(db, tables, integer_ids=integer_ids)

    def _query_ids(self, ids: List[str]) -> List[Any]:
        """
        Chuẩn bị IDs cho query.

        Với integer_ids, ID không phải số nguyên ASCII (ví dụ "abc", "--5", "²")
        không thể tồn tại trong table nên bị bỏ qua, tránh lẫn int/str trong IN.
        """
        if not self.integer_ids:
            return list(ids)
        return [int(record_id) for record_id in ids if INTEGER_ID_RE.fullmatch(record_id)]

    async def fetch_by_ids(self, kind: str, ids: List[str]) -> List[RecordResponse]:
        """
        Query rows theo danh sách ID (không đảm bảo thứ tự).

        Args:
            kind: Entity kind
            ids: List of IDs (string)

        Returns:
            List of RecordResponse
        """
        if kind not in self.tables:
            raise ValueError(f"Unknown record kind: {kind}")

        query_ids = self._query_ids(ids)
        if not query_ids:
            return []

        records_table = table(self.tables[kind], column("id"))
        stmt = (
            select(literal_column("*"))
            .select_from(records_table)
            .where(records_table.c.id.in_(query_ids))
        )

        try:
            result = await self.db.execute(stmt)
            rows = result.mappings().all()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {kind} records by ids: {e}")
            raise

        records = []
        for row in rows:
            attributes = {name: value for name, value in row.items() if name != "id"}
            records.append(RecordResponse(kind=kind, id=str(row["id"]), attributes=attributes))
        return records


class RecordGateway:
    """Lấy rows theo danh sách ID đã rank, giữ nguyên thứ tự rank."""

    def __init__(self, record_store):
        self.record_store = record_store

    async def fetch(
        self,
        kind: str,
        ordered_ids: Sequence[RecordId],
        limit: Optional[int] = None,
        offset: int = 0
    ) -> List[RecordResponse]:
        """
        Lấy rows theo thứ tự ordered_ids.

        Args:
            kind: Entity kind
            ordered_ids: IDs đã sắp xếp (rank cao nhất ở đầu)
            limit: Số rows tối đa (None = không giới hạn)
            offset: Bỏ qua bao nhiêu rows đầu

        Returns:
            List of RecordResponse theo đúng thứ tự ordered_ids
        """
        validate_page(limit, offset)

        if not ordered_ids:
            return []

        # Tạo list giữ thứ tự, bỏ ID trùng
        ids = list(dict.fromkeys(str(record_id) for record_id in ordered_ids))

        rows = await self.record_store.fetch_by_ids(kind, ids)
        logger.debug(f"Fetched {len(rows)}/{len(ids)} {kind} records")

        # Tạo dict để map ID -> row, trả về theo thứ tự IDs ban đầu
        row_dict = {str(row.id): row for row in rows}
        ordered = [row_dict[record_id] for record_id in ids if record_id in row_dict]

        end = None if limit is None else offset + limit
        return ordered[offset:end]
