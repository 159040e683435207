"""
Lazy expiry sweep.

Nothing deletes expired content in the background; list endpoints call
`clean_expired()` before reading and persist the result.
"""
import logging

from services.validators import parse_timestamp, utc_now

logger = logging.getLogger(__name__)


def is_expired(item: dict, now) -> bool:
    raw = item.get("expiryDate")
    if not raw:
        return False
    expiry = parse_timestamp(raw)
    # unparseable expiry is treated as already past
    return expiry is None or expiry <= now


def _keep_live(items, now):
    live = [item for item in items if not is_expired(item, now)]
    return live, len(items) - len(live)


def clean_expired(doc: dict, now=None) -> int:
    """Drop expired faculty posts, assignments, progress cards and notifications."""
    now = now or utc_now()
    removed = 0

    for class_posts in (doc.get("facultyPosts") or {}).values():
        for post_type, posts in class_posts.items():
            class_posts[post_type], count = _keep_live(posts, now)
            removed += count

    for collection in ("assignments", "progressCards"):
        by_class = doc.get(collection) or {}
        for class_code, items in by_class.items():
            by_class[class_code], count = _keep_live(items, now)
            removed += count

    if isinstance(doc.get("notifications"), list):
        doc["notifications"], count = _keep_live(doc["notifications"], now)
        removed += count

    if removed:
        logger.info("Expiry sweep removed %d entries", removed)
    return removed
