"""Cache key derivation for generated summaries.

Keys are scoped to the requesting user: the same canonical text submitted by
two users yields two different keys, and therefore two independent cache
entries.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable


def _sha256(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def hash_input_text(text: str) -> str:
    """Unscoped digest of canonical text, stored alongside the artifact."""
    return _sha256(text)


def listing_ids_key(item_ids: Iterable[str]) -> str:
    """Order-independent identity of a set of listing ids."""
    return ",".join(sorted(str(i) for i in item_ids))


def key_for(text: str, user_id: str) -> str:
    return _sha256("summary\0" + str(user_id) + "\0" + text)


def key_for_comparison(item_ids: Iterable[str], user_id: str) -> str:
    return _sha256("compare\0" + str(user_id) + "\0" + listing_ids_key(item_ids))
