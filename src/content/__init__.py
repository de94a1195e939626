"""Content domain: the store-agnostic ContentRecord and its identity."""

from blogsync.content.identity import canonical_identity, normalize_identity
from blogsync.content.models import (
    EPOCH_FLOOR,
    ContentRecord,
    PostStatus,
    StoreName,
    is_visible,
    visible_posts,
)

__all__ = [
    "EPOCH_FLOOR",
    "ContentRecord",
    "PostStatus",
    "StoreName",
    "canonical_identity",
    "is_visible",
    "normalize_identity",
    "visible_posts",
]
