"""Rating aggregation for catalog games.

Derives the cached ``average_rating`` and ``rating_distribution`` of a game
from its full review collection.  Every call is a complete recomputation:
nothing is carried over from the previous values, so calling an operation
twice on an unchanged game yields identical results.

The aggregator does not watch the review collection.  Whoever appends a
review (see :class:`~app.services.review_service.ReviewService`) must call
:meth:`RatingAggregator.refresh` before persisting or displaying the game.
"""

import logging
from typing import Optional

from ..models import RatingDistribution

logger = logging.getLogger(__name__)


class RatingAggregator:
    """Computes review aggregates in place on a game.

    *game* is any object exposing ``reviews`` (an iterable of objects with an
    integer ``rating``) and writable ``average_rating`` and
    ``rating_distribution`` attributes, e.g. :class:`database.Game`.
    """

    def compute_average(self, game) -> Optional[int]:
        """Set ``game.average_rating`` to the rounded mean of its ratings.

        Halves round up (``[4, 5]`` averages to 5).  A game without reviews
        gets ``None``, never 0.

        Returns:
            The new average.
        """
        ratings = [review.rating for review in game.reviews]
        if not ratings:
            game.average_rating = None
            return None
        total, count = sum(ratings), len(ratings)
        # floor(total / count + 1/2) without going through floats
        average = (2 * total + count) // (2 * count)
        game.average_rating = average
        logger.debug("Average rating for %r: %d (%d reviews)", game, average, count)
        return average

    def compute_distribution(self, game) -> RatingDistribution:
        """Rebuild ``game.rating_distribution`` from all of its reviews.

        Raises:
            InvalidRatingError: if a review carries a rating outside 1-5.
                The game's cached distribution is left untouched.

        Returns:
            The new distribution.
        """
        distribution = RatingDistribution()
        for review in game.reviews:
            distribution.increment(review.rating)
        game.rating_distribution = distribution
        return distribution

    def refresh(self, game) -> None:
        """Recompute both the average and the distribution of *game*."""
        # distribution first: it rejects invalid ratings before anything is written
        self.compute_distribution(game)
        self.compute_average(game)
