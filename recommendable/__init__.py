"""
Recommendable core package.

Cấu trúc:
- config.py: Settings đọc từ environment (.env)
- recommender/: key schema, score store (Redis), record gateway, recommender, consistency
- schemas/: pydantic models cho rows trả về
- db/: async SQLAlchemy engine / session helpers
"""

__version__ = "1.0.0"
