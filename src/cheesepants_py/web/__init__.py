"""Web layer for cheesepants-py API."""

from cheesepants_py.web.games import GameController
from cheesepants_py.web.health import HealthController
from cheesepants_py.web.router import create_router

__all__ = ["GameController", "HealthController", "create_router"]
