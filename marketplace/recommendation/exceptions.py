from contextlib import contextmanager

from django.db import DatabaseError


class RecommendationError(Exception):
    pass


class TransientStorageError(RecommendationError):
    """The store could not be reached or the work missed its deadline; safe to retry."""


class ComputationError(RecommendationError):
    """Reference data for a single item is missing or malformed."""


@contextmanager
def storage_errors(operation):
    try:
        yield
    except DatabaseError as exc:
        raise TransientStorageError(f"{operation} failed: {exc}") from exc
