"""
Helper script để setup Redis data cho testing recommender
=========================================================

Usage:
    python -m recommendable.recommender.setup_redis_data

Seed:
- Rater 1 similarity: {2: 0.9, 3: 0.4}
- Rater 5 đã like Movie 13 (liked + liked_by)
- Rater 5 recommended Movie: {10: 3.0, 11: -1.0, 12: 0.0}
"""

from typing import List, Optional

import redis

from recommendable.recommender.key_schema import KeySchema
from recommendable.recommender.redis_client import create_redis_client

DEMO_CLASS = "Movie"


def setup_redis_data(
    client: Optional[redis.Redis] = None,
    key_schema: Optional[KeySchema] = None
) -> List[str]:
    """
    Setup demo Redis data cho recommender.

    Args:
        client: Redis client (default: tạo từ settings)
        key_schema: KeySchema (default: không namespace)

    Returns:
        List keys đã tạo
    """
    key_schema = key_schema or KeySchema()

    print("=" * 80)
    print("SETUP REDIS DATA CHO RECOMMENDABLE")
    print("=" * 80)

    if client is None:
        client = create_redis_client()

    # Test connection
    try:
        client.ping()
        print("\n[OK] Đã kết nối Redis thành công!")
    except redis.ConnectionError:
        print("\n[ERROR] Không thể kết nối Redis!")
        print("Vui lòng đảm bảo Redis đang chạy:")
        print("  Docker: docker run -d -p 6379:6379 redis")
        return []

    # 1. Similarity set của rater 1 (ZSET)
    key_similarity = key_schema.similarity_set_for(1)
    client.delete(key_similarity)
    client.zadd(key_similarity, {"2": 0.9, "3": 0.4})
    print(f"  ✅ Similarity: {client.zrevrange(key_similarity, 0, -1, withscores=True)}")

    # 2. Rater 5 đã like Movie 13 (SET + reverse index)
    key_liked = key_schema.liked_set_for(DEMO_CLASS, 5)
    key_liked_by = key_schema.liked_by_set_for(DEMO_CLASS, 13)
    client.delete(key_liked, key_liked_by)
    client.sadd(key_liked, "13")
    client.sadd(key_liked_by, "5")
    print(f"  ✅ Liked: {client.smembers(key_liked)}")

    # 3. Recommended Movie cho rater 5 (ZSET, có score <= 0)
    key_recommended = key_schema.recommended_set_for(DEMO_CLASS, 5)
    client.delete(key_recommended)
    client.zadd(key_recommended, {"10": 3.0, "11": -1.0, "12": 0.0})
    print(f"  ✅ Recommended: {client.zrevrange(key_recommended, 0, -1, withscores=True)}")

    keys = [key_similarity, key_liked, key_liked_by, key_recommended]

    print("\n" + "=" * 80)
    print("[OK] Redis data đã được setup!")
    print("=" * 80)
    print("\nKeys created:")
    for key in keys:
        print(f"  - {key}")

    return keys


if __name__ == "__main__":
    setup_redis_data()
