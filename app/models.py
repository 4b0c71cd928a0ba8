"""Value objects shared by the rating services and the persistence layer."""
from dataclasses import dataclass
from typing import Dict

MIN_RATING = 1
MAX_RATING = 5


class InvalidRatingError(ValueError):
    """Raised when a review rating falls outside ``MIN_RATING``-``MAX_RATING``."""

    def __init__(self, rating) -> None:
        super().__init__(
            f"Rating must be between {MIN_RATING} and {MAX_RATING}, got {rating!r}")
        self.rating = rating


def is_valid_rating(rating) -> bool:
    """Return ``True`` if *rating* is an integer star value (bools excluded)."""
    return (isinstance(rating, int) and not isinstance(rating, bool)
            and MIN_RATING <= rating <= MAX_RATING)


@dataclass
class RatingDistribution:
    """Number of reviews per rating value.

    ``one`` counts 1-star reviews, ``five`` counts 5-star reviews.  The sum
    of all counters is the number of reviews the distribution was built from.
    """

    one: int = 0
    two: int = 0
    three: int = 0
    four: int = 0
    five: int = 0

    _FIELDS = ('one', 'two', 'three', 'four', 'five')

    def increment(self, rating: int) -> None:
        """Add one review of *rating* stars.

        Raises:
            InvalidRatingError: if *rating* is not an integer in 1-5.
        """
        if not is_valid_rating(rating):
            raise InvalidRatingError(rating)
        name = self._FIELDS[rating - MIN_RATING]
        setattr(self, name, getattr(self, name) + 1)

    def count(self, rating: int) -> int:
        """Return the number of reviews with *rating* stars."""
        if not is_valid_rating(rating):
            raise InvalidRatingError(rating)
        return getattr(self, self._FIELDS[rating - MIN_RATING])

    @property
    def total(self) -> int:
        return self.one + self.two + self.three + self.four + self.five

    def as_dict(self) -> Dict[str, int]:
        """Return ``{"1": n, ..., "5": n}``."""
        return {str(value): self.count(value)
                for value in range(MIN_RATING, MAX_RATING + 1)}
