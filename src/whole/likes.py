"""
Whole - Like Synchronizer.

The local liked set is authoritative between issuing a remote call and its
resolution. Every like/unlike:

1. mutates the local set immediately (optimistic)
2. queues a pending call for that quote id, remembering the membership
   to restore if it fails
3. awaits the remote mutation
4. resolves against the queue

Rapid like → unlike on the same quote can resolve in any order:

- a success confirms its own state and supersedes every older call
- a failure of the newest call restores its membership and raises; older
  calls stay queued, so if they fail too the set ends at the last
  acknowledged state
- a failure of an older call is dropped, and the next call inherits its
  restore target (the provisional state it was built on never existed)
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable

from whole.db.gateway import QuoteGateway
from whole.errors import GatewayError, LikesFetchError, LikeSyncError

logger = logging.getLogger(__name__)


@dataclass
class BulkUnlikeResult:
    """Outcome of remove_many(). Each id succeeds or fails on its own."""

    removed: list[str] = field(default_factory=list)
    failed: dict[str, LikeSyncError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed


class _PendingCall:
    """One in-flight like/unlike. Compared by identity."""

    __slots__ = ("restore",)

    def __init__(self, restore: bool):
        self.restore = restore


class LikeSynchronizer:
    """Liked-quote set with optimistic mutation and remote reconciliation."""

    def __init__(self, gateway: QuoteGateway, user_id: str | None = None):
        self.gateway = gateway
        self.user_id = user_id
        self._liked: set[str] = set()
        self._pending: dict[str, list[_PendingCall]] = {}

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def is_liked(self, quote_id: str) -> bool:
        return quote_id in self._liked

    def liked_ids(self) -> set[str]:
        return set(self._liked)

    def has_pending(self, quote_id: str) -> bool:
        return bool(self._pending.get(quote_id))

    async def fetch_all(self, user_id: str | None) -> set[str]:
        """
        Replace the local set with the remote one for `user_id`.

        No user means no likes: the set is cleared without a remote call.
        """
        if not user_id:
            self.user_id = None
            self._liked = set()
            self._pending.clear()
            return set()

        try:
            ids = await self.gateway.fetch_liked_quote_ids(user_id)
        except GatewayError as e:
            raise LikesFetchError("Failed to fetch liked quotes.") from e

        self.user_id = user_id
        self._liked = set(ids)
        # Anything still in flight was issued against the old set
        self._pending.clear()
        return set(self._liked)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def like(self, quote_id: str) -> None:
        await self._mutate("like", quote_id, liked=True)

    async def unlike(self, quote_id: str) -> None:
        await self._mutate("unlike", quote_id, liked=False)

    async def remove_many(self, quote_ids: Iterable[str]) -> BulkUnlikeResult:
        """
        Bulk unlike (e.g. deleting rows from the favorites list).

        All ids leave the local set at once; the remote unlikes run
        concurrently. A failed id is restored on its own and reported in
        the result; the others stay removed.
        """
        quote_ids = list(dict.fromkeys(quote_ids))
        calls = {qid: self._apply(qid, liked=False) for qid in quote_ids}

        result = BulkUnlikeResult()
        if self.user_id is None:
            result.removed = quote_ids
            return result

        outcomes = await asyncio.gather(
            *(self.gateway.unlike_quote(qid, self.user_id) for qid in quote_ids),
            return_exceptions=True,
        )

        for qid, outcome in zip(quote_ids, outcomes):
            if isinstance(outcome, GatewayError):
                error = self._resolve_failure("unlike", qid, calls[qid])
                if error is not None:
                    result.failed[qid] = error
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                self._resolve_success(qid, calls[qid])
                result.removed.append(qid)

        if result.failed:
            logger.error(f"Bulk unlike: {len(result.failed)} of {len(quote_ids)} failed")
        return result

    async def _mutate(self, operation: str, quote_id: str, liked: bool) -> None:
        call = self._apply(quote_id, liked)

        if self.user_id is None:
            # Not signed in: nothing to sync
            self._resolve_success(quote_id, call)
            return

        try:
            if liked:
                await self.gateway.like_quote(quote_id, self.user_id)
            else:
                await self.gateway.unlike_quote(quote_id, self.user_id)
        except GatewayError as e:
            error = self._resolve_failure(operation, quote_id, call)
            if error is not None:
                raise error from e
            return

        self._resolve_success(quote_id, call)

    def _apply(self, quote_id: str, liked: bool) -> _PendingCall:
        """Optimistic local mutation, queued behind any call still in flight."""
        call = _PendingCall(restore=quote_id in self._liked)
        if liked:
            self._liked.add(quote_id)
        else:
            self._liked.discard(quote_id)
        self._pending.setdefault(quote_id, []).append(call)
        return call

    def _position(self, quote_id: str, call: _PendingCall) -> int | None:
        for i, pending in enumerate(self._pending.get(quote_id, ())):
            if pending is call:
                return i
        return None

    def _resolve_success(self, quote_id: str, call: _PendingCall) -> None:
        """The remote now holds this call's state; older calls no longer matter."""
        position = self._position(quote_id, call)
        if position is None:
            return
        calls = self._pending[quote_id]
        del calls[: position + 1]
        if not calls:
            del self._pending[quote_id]

    def _resolve_failure(
        self,
        operation: str,
        quote_id: str,
        call: _PendingCall,
    ) -> LikeSyncError | None:
        """Roll back if this call is the newest for the quote."""
        position = self._position(quote_id, call)
        if position is None:
            logger.warning(f"Ignoring stale {operation} failure for {quote_id}")
            return None

        calls = self._pending[quote_id]
        calls.pop(position)
        if position < len(calls):
            # A newer call was built on this one's provisional state
            calls[position].restore = call.restore
            logger.warning(f"Ignoring superseded {operation} failure for {quote_id}")
            return None

        if not calls:
            del self._pending[quote_id]
        if call.restore:
            self._liked.add(quote_id)
        else:
            self._liked.discard(quote_id)
        logger.error(f"{operation} {quote_id} failed, rolled back")
        return LikeSyncError(operation, quote_id)
