"""Business logic for game reviews."""
import logging
from typing import List, Optional

from database import Game, Review, User
from ..models import InvalidRatingError, is_valid_rating
from ..repositories.review_repository import ReviewRepository
from .rating_service import RatingAggregator

logger = logging.getLogger(__name__)


class ReviewService:
    """Validates and records reviews, delegating persistence to
    :class:`~app.repositories.review_repository.ReviewRepository`.

    Rules
    -----
    * ``rating`` must be an integer in the range **1–5** (inclusive).
    * ``comment`` is free-text and optional (defaults to ``""``).
    * After a review is attached to its game, the game's average rating and
      rating distribution are recomputed from all of its reviews before the
      transaction is committed.
    """

    def __init__(self, repository: ReviewRepository,
                 aggregator: Optional[RatingAggregator] = None) -> None:
        self._repo = repository
        self._aggregator = aggregator or RatingAggregator()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def submit(self, game: Game, user: User, rating: int,
               comment: str = '') -> Optional[Review]:
        """Attach a new review to *game* and refresh its aggregates.

        Returns:
            The persisted :class:`~database.Review`; ``None`` if *rating*
            is out of range.
        """
        if not is_valid_rating(rating):
            logger.info("Rejected review for %r: invalid rating %r", game, rating)
            return None
        review = Review(user=user, rating=rating, comment=comment or '')
        game.reviews.append(review)
        try:
            self._aggregator.refresh(game)
        except InvalidRatingError:
            # a stored review is corrupt; do not leave the new one attached
            game.reviews.remove(review)
            raise
        self._repo.add(review)
        self._repo.commit()
        logger.info("Review %s by %s recorded for %r (average now %s)",
                    review.id, user.username, game, game.average_rating)
        return review

    def get_for_game(self, game: Game) -> List[Review]:
        """Return the reviews of *game* in submission order."""
        return self._repo.for_game(game)
