"""
Tracker Errors

Exceptions raised inside the vitality tracker. Each carries the
FailureReason reported back to callers in a TrackerResult.
"""
from fiber_friends.models.schemas import FailureReason


class TrackerError(Exception):
    reason: FailureReason = FailureReason.STORAGE_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class StorageError(TrackerError):
    """The document store could not complete a read or write."""
    reason = FailureReason.STORAGE_ERROR


class MonsterNotFoundError(TrackerError):
    reason = FailureReason.MONSTER_NOT_FOUND


class MonsterAlreadyExistsError(TrackerError):
    reason = FailureReason.MONSTER_ALREADY_EXISTS


class MonsterRetiredError(TrackerError):
    reason = FailureReason.MONSTER_RETIRED


class ConcurrentModificationError(TrackerError):
    """A conditional health write lost a race with another session."""
    reason = FailureReason.CONCURRENT_MODIFICATION


class UnknownActivityError(TrackerError):
    reason = FailureReason.UNKNOWN_ACTIVITY
