"""Game domain services: puzzles, sessions, scores and the live leaderboard.

This package contains pure(ish) domain logic that should be imported by
HTTP routes and socket handlers, keeping transport concerns separated
from core game mechanics.
"""

from dataclasses import dataclass

from flask import current_app

from .broadcaster import Broadcaster
from .catalog import PuzzleCatalog, load_catalog
from .registry import SessionRegistry
from .score_store import ScoreStore
from .state import SessionRules


@dataclass
class GameServices:
    catalog: PuzzleCatalog
    store: ScoreStore
    broadcaster: Broadcaster
    rules: SessionRules
    leaderboard_size: int
    registry: SessionRegistry = None


def init_services(app) -> GameServices:
    from clueboard import db, socketio

    cfg = app.config
    services = GameServices(
        catalog=load_catalog(cfg.get('PUZZLE_DATA_PATH')),
        store=ScoreStore(db.session),
        broadcaster=Broadcaster(socketio, async_delivery=bool(cfg.get('BROADCAST_ASYNC_DELIVERY'))),
        rules=SessionRules(
            life_limit=int(cfg.get('LIFE_LIMIT', 4)),
            reset_lives_on_correct=bool(cfg.get('RESET_LIVES_ON_CORRECT')),
        ),
        leaderboard_size=int(cfg.get('LEADERBOARD_SIZE', 5)),
    )
    services.registry = SessionRegistry(services, idle_timeout=float(cfg.get('SESSION_IDLE_TIMEOUT_SEC', 1800)))
    app.extensions['clueboard'] = services
    app.logger.info(
        f"[services] categories={len(services.catalog.categories)} life_limit={services.rules.life_limit} "
        f"leaderboard_size={services.leaderboard_size}"
    )
    return services


def get_services() -> GameServices:
    return current_app.extensions['clueboard']
