"""
Host Identity

The form runs inside a Telegram WebApp. At startup the host hands over an
init data string (URL-encoded query string with a `user` JSON field and a
signature). We only need two things from it:

1. The opaque token to attach to every backend request (the raw string;
   the backend verifies the signature, we never do)
2. A user label for the header

No init data means "not connected": the form still works locally, the
history shows an idle status. That is not an error.
"""

import json
from typing import Optional
from urllib.parse import parse_qsl

from pydantic import BaseModel

from kassa.config import TelegramSettings, get_settings


class HostIdentity(BaseModel):
    """Who is using the form, as reported by the host platform."""

    user_token: str
    user_id: Optional[int] = None
    username: Optional[str] = None
    first_name: Optional[str] = None

    @classmethod
    def from_init_data(cls, init_data: str) -> "HostIdentity":
        """
        Parse a WebApp init data string.

        Malformed user JSON leaves the user fields empty; the token is
        still usable because the backend is the one that checks it.
        """
        fields = dict(parse_qsl(init_data, keep_blank_values=True))
        user: dict = {}
        raw_user = fields.get("user")
        if raw_user:
            try:
                decoded = json.loads(raw_user)
            except ValueError:
                decoded = None
            if isinstance(decoded, dict):
                user = decoded

        user_id = user.get("id")
        return cls(
            user_token=init_data,
            user_id=user_id if isinstance(user_id, int) else None,
            username=user.get("username") or None,
            first_name=user.get("first_name") or None,
        )

    @property
    def display_name(self) -> str:
        if self.username:
            return f"@{self.username}"
        if self.first_name:
            return self.first_name
        if self.user_id is not None:
            return str(self.user_id)
        return "—"


def resolve_identity(
    init_data: Optional[str] = None,
    settings: Optional[TelegramSettings] = None,
) -> Optional[HostIdentity]:
    """
    Find the host identity for this session.

    Explicit init data wins over configuration. Returns None when
    neither is available.
    """
    if init_data is None:
        settings = settings or get_settings().telegram
        init_data = settings.init_data
    if not init_data or not init_data.strip():
        return None
    return HostIdentity.from_init_data(init_data.strip())
