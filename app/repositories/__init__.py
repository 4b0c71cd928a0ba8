"""Repository package — expose all concrete repositories from one import."""
from .game_repository import GameRepository
from .review_repository import ReviewRepository

__all__ = [
    'GameRepository',
    'ReviewRepository',
]
