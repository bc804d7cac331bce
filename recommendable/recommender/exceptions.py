from typing import Optional


class StoreError(Exception):
    """Lỗi kết nối / protocol từ score store (Redis)."""

    def __init__(self, operation: str, key: Optional[str] = None, message: str = ""):
        self.operation = operation
        self.key = key
        detail = f"Score store {operation} failed"
        if key is not None:
            detail += f" for key '{key}'"
        if message:
            detail += f": {message}"
        super().__init__(detail)
