"""Game domain services: store, round lifecycle, guesses and timers.

This package contains the core game logic that HTTP routes and socket
handlers call into, keeping transport concerns separated from core game
mechanics. ``init_game_services`` builds one set of services per Flask app.
"""

from dataclasses import dataclass

from flask import current_app

from .coordinator import RoundCoordinator
from .definitions import DefinitionProvider
from .feed import ChangeFeed
from .scheduler import TransitionScheduler
from .store import RoomStore

EXTENSION_KEY = 'guessroom'


@dataclass
class GameServices:
    feed: ChangeFeed
    store: RoomStore
    scheduler: TransitionScheduler
    coordinator: RoundCoordinator


def init_game_services(app, session, socketio) -> GameServices:
    feed = ChangeFeed()
    store = RoomStore(session, feed)
    scheduler = TransitionScheduler()
    scheduler.init_app(app, socketio)
    coordinator = RoundCoordinator(store, scheduler, DefinitionProvider(), config=app.config, logger=app.logger)
    services = GameServices(feed=feed, store=store, scheduler=scheduler, coordinator=coordinator)
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> GameServices:
    return current_app.extensions[EXTENSION_KEY]
