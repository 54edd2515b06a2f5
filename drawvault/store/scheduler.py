"""Time-windowed auto-commit decisions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from enum import Enum

from drawvault.config.models import AutoCommitConfig

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CommitState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    COMMITTING = "committing"


class AutoCommitScheduler:
    """State machine ``IDLE -> PENDING -> COMMITTING -> IDLE``.

    A commit is due when the policy is enabled, there are pending changes, no
    commit is in flight, and at least ``policy.interval`` minutes have passed
    since the last commit. ``begin_commit`` clears the pending flag and stamps
    ``last_commit_time`` before the caller awaits the backend, so a write that
    lands mid-commit is queued as new pending work instead of triggering a
    second commit.
    """

    def __init__(self, policy: AutoCommitConfig | None = None, clock: Clock | None = None) -> None:
        self.policy = policy or AutoCommitConfig()
        self._clock = clock or utcnow
        self.last_commit_time: datetime = self._clock()
        self.state = CommitState.IDLE
        self._dirty_while_committing = False
        self._before_commit: tuple[CommitState, datetime] | None = None

    @property
    def pending_changes(self) -> bool:
        if self.state is CommitState.COMMITTING:
            return self._dirty_while_committing
        return self.state is CommitState.PENDING

    @property
    def interval(self) -> timedelta:
        return timedelta(minutes=self.policy.interval)

    def mark_dirty(self) -> None:
        """Record that the open document was written but not committed."""
        if self.state is CommitState.COMMITTING:
            self._dirty_while_committing = True
        else:
            self.state = CommitState.PENDING

    def discard(self) -> None:
        """Forget pending work (the document it belonged to is gone)."""
        if self.state is CommitState.COMMITTING:
            self._dirty_while_committing = False
        else:
            self.state = CommitState.IDLE

    def is_due(self) -> bool:
        if not self.policy.enabled or self.state is not CommitState.PENDING:
            return False
        return self._clock() - self.last_commit_time >= self.interval

    def begin_commit(self) -> None:
        self._before_commit = (self.state, self.last_commit_time)
        self.state = CommitState.COMMITTING
        self.last_commit_time = self._clock()
        self._dirty_while_committing = False

    def finish_commit(self, success: bool = True) -> None:
        """Leave COMMITTING.

        A failed commit puts back the state and window that were in place
        before ``begin_commit``, plus any write that landed meanwhile.
        """
        before = self._before_commit or (CommitState.IDLE, self.last_commit_time)
        if not success:
            was_pending = before[0] is CommitState.PENDING
            self.last_commit_time = before[1]
        else:
            was_pending = False
        if was_pending or self._dirty_while_committing:
            self.state = CommitState.PENDING
        else:
            self.state = CommitState.IDLE
        self._dirty_while_committing = False
        self._before_commit = None

    def resume(self, last_commit_time: datetime | None) -> None:
        """Start the window from an earlier commit (``None``: nothing committed yet)."""
        self.last_commit_time = last_commit_time or datetime.min.replace(tzinfo=timezone.utc)

    def update_policy(self, policy: AutoCommitConfig) -> None:
        """Swap the policy.

        Lengthening the interval while changes are pending moves
        ``last_commit_time`` to ``now - interval + 1 minute`` so the pending
        edit is not held back for a whole new interval.
        """
        lengthened = policy.interval > self.policy.interval
        self.policy = policy
        if lengthened and self.pending_changes:
            self.last_commit_time = self._clock() - self.interval + timedelta(minutes=1)
            logger.debug("interval lengthened to %d min; next commit at %s",
                         policy.interval, self.last_commit_time + self.interval)
