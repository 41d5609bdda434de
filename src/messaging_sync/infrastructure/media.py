from __future__ import annotations

import httpx


class UrlAvatarRefValidator:
    """Implements application.ports.media.AvatarRefValidator.

    The upload service hands back absolute http(s) URLs; anything else is
    rejected before a group mutation is attempted.
    """

    def is_valid(self, avatar_ref: str) -> bool:
        try:
            url = httpx.URL(avatar_ref.strip())
        except (httpx.InvalidURL, TypeError):
            return False
        return url.scheme in ("http", "https") and bool(url.host)
