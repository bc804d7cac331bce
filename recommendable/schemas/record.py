"""
Record schemas cho RecordGateway.
"""
from typing import Optional, Dict, Any, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Ký tự không được phép trong class name (key trùng hoặc glob pattern match nhầm)
RESERVED_KEY_CHARS = (":", "*", "?", "[", "]")


class RatableClass(BaseModel):
    """
    Descriptor cho một ratable class do host đăng ký (ví dụ Movie, Book).
    """
    name: str = Field(..., description="Class name dùng trong Redis key")
    table: Optional[str] = Field(None, description="Table name trong record store")

    model_config = ConfigDict(frozen=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        if not value:
            raise ValueError("Ratable class name must not be empty")
        for char in RESERVED_KEY_CHARS:
            if char in value:
                raise ValueError(f"Ratable class name must not contain {char!r}: {value}")
        return value

    @property
    def table_name(self) -> str:
        """Table name, mặc định là tên class viết thường + 's' (Movie -> movies)."""
        return self.table or f"{self.name.lower()}s"

    def __str__(self) -> str:
        return self.name


ClassRef = Union[RatableClass, str]


def class_name_of(klass: ClassRef) -> str:
    """Lấy class name từ RatableClass hoặc string."""
    if isinstance(klass, RatableClass):
        return klass.name
    return RatableClass(name=klass).name


class RecordResponse(BaseModel):
    """
    Row đã materialize từ record store, giữ nguyên thứ tự rank.
    """
    kind: str = Field(..., description="Entity kind (rater class hoặc ratable class)")
    id: str = Field(..., description="Record ID (string hoá để khớp với Redis member)")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Các cột còn lại của row")

    class Config:
        from_attributes = True
