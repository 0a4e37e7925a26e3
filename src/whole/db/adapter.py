"""
Database Adapter Protocol.

The gateway talks to storage through this thin interface, matching the
Supabase/PostgREST query builder pattern: table() returns a query builder
that supports .select(), .insert(), .update(), .delete(), .eq(), .execute().

A supabase.Client satisfies it as-is; tests pass a MagicMock.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DatabaseAdapter(Protocol):
    """Abstract database access for the Supabase gateway."""

    def table(self, name: str) -> Any:
        """Return a PostgREST-style query builder for the given table."""
        ...
