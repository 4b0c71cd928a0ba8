"""Services package — expose all concrete services from one import."""
from .rating_service import RatingAggregator
from .listing_service import (
    Direction,
    InvalidListingParameter,
    ListingFilter,
    ListingQuery,
    ListingQueryEngine,
    Page,
    SortKey,
    Sorting,
    parse_listing_args,
)
from .pagination import PaginationLink, build_pagination
from .review_service import ReviewService

__all__ = [
    'RatingAggregator',
    'Direction',
    'InvalidListingParameter',
    'ListingFilter',
    'ListingQuery',
    'ListingQueryEngine',
    'Page',
    'SortKey',
    'Sorting',
    'parse_listing_args',
    'PaginationLink',
    'build_pagination',
    'ReviewService',
]
