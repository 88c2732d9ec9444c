"""Player identity as supplied by the hosting platform.

The platform fronting this service puts the player's name in a request
header. Flask-Login turns that into ``current_user``; nothing here checks
credentials.
"""

import logging
import random

from flask import current_app, request
from flask_login import UserMixin, current_user

from clueboard.errors import IdentityUnavailable

logger = logging.getLogger(__name__)


class PlatformUser(UserMixin):
    def __init__(self, name):
        self.id = name
        self.username = name


def guest_label(rng=None) -> str:
    return f"Guest-{(rng or random).randint(0, 9999)}"


def _load_from_request(req):
    header = current_app.config.get('PLAYER_IDENTITY_HEADER', 'X-Player-Identity')
    name = (req.headers.get(header) or '').strip()
    return PlatformUser(name) if name else None


def init_identity(login_manager) -> None:
    login_manager.request_loader(_load_from_request)


def get_current_identity() -> str:
    """The platform-supplied player name, or IdentityUnavailable."""
    if current_user and current_user.is_authenticated:
        return current_user.username
    raise IdentityUnavailable('no player identity on request')


def resolve_player(requested_name=None) -> str:
    """Explicit name first, then the platform identity, then a guest label."""
    name = (requested_name or '').strip()
    if name:
        return name
    try:
        return get_current_identity()
    except IdentityUnavailable:
        label = guest_label()
        logger.info(f"[identity-fallback] remote={request.remote_addr} guest={label}")
        return label
