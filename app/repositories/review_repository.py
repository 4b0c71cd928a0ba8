"""Repository for game reviews."""
from typing import List

from database import Game, Review
from .base import BaseRepository


class ReviewRepository(BaseRepository):
    """Persists reviews.

    :meth:`add` only stages the review; the submission flow commits once
    the game's aggregates have been refreshed, so the review and the new
    aggregates land in the same transaction.
    """

    def add(self, review: Review) -> None:
        """Stage *review* in the session without committing."""
        self._session.add(review)

    def for_game(self, game: Game) -> List[Review]:
        """Return the reviews of *game* in submission order."""
        return (self._session.query(Review)
                .filter(Review.video_game_id == game.id)
                .order_by(Review.id)
                .all())

    def commit(self) -> None:
        """Commit everything staged in the session."""
        self._commit()
