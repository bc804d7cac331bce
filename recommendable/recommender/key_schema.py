"""
Key Schema
==========

Mapping thuần (không side effect) từ (kind, owner_id, class) -> Redis key.

Redis keys:
- similarity:{rater_id} (ZSET: other_rater_id -> score)
- liked|disliked|hidden|bookmarked:{class}:{rater_id} (SET: item_id)
- liked_by|disliked_by:{class}:{item_id} (SET: rater_id)
- recommended:{class}:{rater_id} (ZSET: item_id -> score)

owner_id = "*" cho wildcard pattern (dùng khi teardown).
"""

from enum import Enum
from typing import Optional, Union

from recommendable.schemas.record import RESERVED_KEY_CHARS, ClassRef, class_name_of

WILDCARD = "*"

OwnerId = Union[int, str]


class KeyKind(str, Enum):
    SIMILARITY = "similarity"
    LIKED = "liked"
    DISLIKED = "disliked"
    HIDDEN = "hidden"
    BOOKMARKED = "bookmarked"
    LIKED_BY = "liked_by"
    DISLIKED_BY = "disliked_by"
    RECOMMENDED = "recommended"


# Các set do rater sở hữu theo từng class (bị DEL khi xoá rater)
RATER_OWNED_CLASS_KINDS = (
    KeyKind.LIKED,
    KeyKind.DISLIKED,
    KeyKind.HIDDEN,
    KeyKind.BOOKMARKED,
    KeyKind.RECOMMENDED,
)


class KeySchema:
    """
    Tạo canonical key strings cho score store.

    Cùng input luôn cho cùng output; hai bộ (kind, owner, class) khác nhau
    không bao giờ cho cùng key vì class name và owner không chứa ':'.
    """

    def __init__(self, namespace: str = ""):
        # Namespace nằm trong SCAN pattern nên không được chứa ký tự glob
        for char in RESERVED_KEY_CHARS:
            if char != ":" and char in namespace:
                raise ValueError(f"Namespace must not contain {char!r}: {namespace}")
        self.namespace = namespace

    def key_for(
        self,
        kind: Union[KeyKind, str],
        owner_id: OwnerId,
        klass: Optional[ClassRef] = None
    ) -> str:
        """
        Build key cho một kind.

        Args:
            kind: KeyKind (hoặc value string của nó)
            owner_id: Rater ID / item ID, hoặc "*" cho wildcard
            klass: Ratable class (bắt buộc với mọi kind trừ similarity)

        Returns:
            Key string
        """
        kind = KeyKind(kind)
        owner = self._owner(owner_id)

        if kind is KeyKind.SIMILARITY:
            if klass is not None:
                raise ValueError("Similarity keys are not scoped to a ratable class")
            parts = [kind.value, owner]
        else:
            if klass is None:
                raise ValueError(f"Key kind '{kind.value}' requires a ratable class")
            parts = [kind.value, class_name_of(klass), owner]

        if self.namespace:
            parts.insert(0, self.namespace)
        return ":".join(parts)

    @staticmethod
    def _owner(owner_id: OwnerId) -> str:
        owner = str(owner_id)
        if not owner:
            raise ValueError("Owner id must not be empty")
        if ":" in owner or (WILDCARD in owner and owner != WILDCARD):
            raise ValueError(f"Invalid owner id: {owner}")
        return owner

    def similarity_set_for(self, rater_id: OwnerId) -> str:
        return self.key_for(KeyKind.SIMILARITY, rater_id)

    def liked_set_for(self, klass: ClassRef, rater_id: OwnerId) -> str:
        return self.key_for(KeyKind.LIKED, rater_id, klass)

    def disliked_set_for(self, klass: ClassRef, rater_id: OwnerId) -> str:
        return self.key_for(KeyKind.DISLIKED, rater_id, klass)

    def hidden_set_for(self, klass: ClassRef, rater_id: OwnerId) -> str:
        return self.key_for(KeyKind.HIDDEN, rater_id, klass)

    def bookmarked_set_for(self, klass: ClassRef, rater_id: OwnerId) -> str:
        return self.key_for(KeyKind.BOOKMARKED, rater_id, klass)

    def liked_by_set_for(self, klass: ClassRef, item_id: OwnerId) -> str:
        return self.key_for(KeyKind.LIKED_BY, item_id, klass)

    def disliked_by_set_for(self, klass: ClassRef, item_id: OwnerId) -> str:
        return self.key_for(KeyKind.DISLIKED_BY, item_id, klass)

    def recommended_set_for(self, klass: ClassRef, rater_id: OwnerId) -> str:
        return self.key_for(KeyKind.RECOMMENDED, rater_id, klass)
