from __future__ import annotations

import time
import uuid

TEMP_ID_PREFIX = "temp-"


def new_temporary_id(prefix: str = TEMP_ID_PREFIX) -> str:
    """Client-side id for an unconfirmed message: ``temp-<epoch ms>-<hex>``."""
    return f"{prefix}{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}"


def is_temporary_id(message_id: str, prefix: str = TEMP_ID_PREFIX) -> bool:
    return message_id.startswith(prefix)
