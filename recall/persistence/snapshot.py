"""
Snapshot - JSON encoding of the engine state

The engine state (items, session log, settings) is stored as one JSON
document. Decoding never raises: an unparseable or schema-invalid blob is
logged and treated as absent state.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from recall.schemas import EXPORT_VERSION, DataPayload
from recall.sm2.item_state import ReviewItem, ReviewSession
from recall.sm2.settings import Settings

logger = logging.getLogger(__name__)


def build_payload(
    items: Iterable[ReviewItem],
    sessions: Iterable[ReviewSession],
    settings: Settings
) -> dict:
    """Plain-dict form of the engine state (JSON-serializable)."""
    return {
        "items": {item.id: item.to_dict() for item in items},
        "sessions": [session.to_dict() for session in sessions],
        "settings": settings.model_dump(),
        "version": EXPORT_VERSION,
    }


def encode_state(
    items: Iterable[ReviewItem],
    sessions: Iterable[ReviewSession],
    settings: Settings
) -> str:
    return json.dumps(build_payload(items, sessions, settings))


def decode_state(blob: Optional[str]) -> Optional[DataPayload]:
    """
    Parse a persisted blob.

    Returns:
        DataPayload, or None if the blob is missing or corrupted
    """
    if blob is None or blob == "":
        return None

    try:
        raw = json.loads(blob)
    except (TypeError, ValueError) as exc:
        logger.warning("Persisted review state is not valid JSON, starting fresh: %s", exc)
        return None

    if not isinstance(raw, dict):
        logger.warning("Persisted review state is not an object, starting fresh")
        return None

    try:
        return DataPayload.model_validate(raw)
    except PydanticValidationError as exc:
        logger.warning(
            "Persisted review state failed validation (%d errors), starting fresh",
            exc.error_count()
        )
        return None
