from .ratings import build_ratings_blueprint
from .ratings_functions import AggregateStats, IdentityResolver, RatingAggregator, RequestContext, compute_stats

__all__ = [
    "AggregateStats",
    "IdentityResolver",
    "RatingAggregator",
    "RequestContext",
    "build_ratings_blueprint",
    "compute_stats",
]
