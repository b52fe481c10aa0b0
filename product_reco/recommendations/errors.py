from __future__ import annotations


class RecommendationError(Exception):
    """Base class for errors the engine lets reach its caller."""


class InvalidQueryError(RecommendationError, ValueError):
    """The request was rejected before any pipeline stage ran."""


class RequestCancelled(RecommendationError):
    """The caller's cancellation event was set while the request was running."""
