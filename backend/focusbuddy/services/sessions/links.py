"""Shareable join links of the form <scheme>://buddy/<id>."""

import re
from typing import Optional
from urllib.parse import urlsplit

LINK_HOST = 'buddy'
SESSION_ID_PATTERN = re.compile(r'^[a-z0-9]{4,32}$')


def is_valid_session_id(session_id) -> bool:
    return isinstance(session_id, str) and bool(SESSION_ID_PATTERN.match(session_id))


def build_join_link(session_id: str, scheme: str = 'focusnest') -> str:
    return f'{scheme}://{LINK_HOST}/{session_id}'


def parse_join_link(url: str, scheme: Optional[str] = None) -> Optional[str]:
    """Return the session id embedded in a join link, or None.

    When `scheme` is given the link must use it.
    """
    if not url:
        return None
    parts = urlsplit(url.strip())
    if not parts.scheme or parts.netloc != LINK_HOST:
        return None
    if scheme is not None and parts.scheme != scheme:
        return None
    session_id = parts.path.strip('/')
    if not is_valid_session_id(session_id):
        return None
    return session_id
