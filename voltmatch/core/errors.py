# voltmatch/core/errors.py
from typing import List, Optional


class MatchingError(Exception):
    """Base class for every error the matching engine raises."""


class ValidationError(MatchingError):
    pass


class AuthError(MatchingError):
    pass


class InvalidStateError(MatchingError):
    pass


class StoreError(MatchingError):
    """The backing document store rejected or failed a call."""


class NotFoundError(StoreError):
    def __init__(self, collection: str, record_id: str):
        super().__init__(f"{collection}/{record_id} not found")
        self.collection = collection
        self.record_id = record_id


class CascadeError(StoreError):
    """
    A cascade step failed and at least one compensating write failed too,
    so the three records may disagree with each other.
    """

    def __init__(self, cause: Exception, compensation_errors: Optional[List[Exception]] = None):
        errors = compensation_errors or []
        super().__init__(
            f"cascade failed ({cause}); {len(errors)} compensating write(s) also failed"
        )
        self.cause = cause
        self.compensation_errors = errors
