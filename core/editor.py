"""
core/editor.py -- Ownership-checked editor for nested ordered collections.

One algorithm serves every embedded list that clients can grow or shrink:
post likes, post comments, profile experience and profile education. Each use
is a CollectionEditor configured with four pieces:

  accessor      -- returns the mutable list inside the aggregate
  build         -- constructs a new element from (caller_id, payload)
  is_duplicate  -- optional uniqueness predicate checked before insertion
  owner_of      -- optional function returning the user id that owns an element

Ordering: new elements are prepended, so index 0 is always the most recent.
Removal takes the FIRST element matching the lookup key in that order.

Check order on remove is fixed: element existence, then ownership, then the
removal itself. Parent existence is the caller's job (stores return None for
a missing aggregate and the service raises NotFound before reaching here).

The editor only mutates the in-memory aggregate. Persisting it is the store's
job -- see social/store.py, which runs the mutation inside a compare-and-set
loop so a raised error never reaches the database.

Layer rule: no imports from api/, auth/, or social/.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, Optional, TypeVar

from core.errors import AppError, DuplicateOperation, NotFound, Unauthorized

A = TypeVar("A")
T = TypeVar("T")


class CollectionEditor(Generic[A, T]):
    """Add/remove elements of one nested collection with duplicate and ownership checks.

    Usage:
        likes = CollectionEditor(
            accessor=lambda post: post.likes,
            build=lambda caller_id, _payload: Like(user=caller_id),
            is_duplicate=lambda like, caller_id: like.user == caller_id,
            duplicate_message="Post already liked",
        )
        likes.add(post, caller_id)
    """

    def __init__(
        self,
        accessor: Callable[[A], list[T]],
        build: Optional[Callable[[str, Any], T]] = None,
        is_duplicate: Optional[Callable[[T, str], bool]] = None,
        duplicate_message: str = "Already exists",
        matches: Optional[Callable[[T, Optional[str], str], bool]] = None,
        owner_of: Optional[Callable[[A, T], str]] = None,
        missing_error: Callable[[str], AppError] = NotFound,
        missing_message: str = "Not found",
        unauthorized_message: str = "User not authorised",
    ) -> None:
        self.accessor = accessor
        self.build = build
        self.is_duplicate = is_duplicate
        self.duplicate_message = duplicate_message
        self.matches = matches or _match_by_id
        self.owner_of = owner_of
        self.missing_error = missing_error
        self.missing_message = missing_message
        self.unauthorized_message = unauthorized_message

    def add(self, aggregate: A, caller_id: str, payload: Any = None) -> list[T]:
        """Prepend a new element built for caller_id. Returns the updated collection.

        Raises DuplicateOperation if the uniqueness predicate matches any
        existing element. The scan happens before the element is constructed.
        """
        if self.build is None:
            raise TypeError("CollectionEditor.add() requires a build function")
        items = self.accessor(aggregate)
        if self.is_duplicate is not None and any(self.is_duplicate(item, caller_id) for item in items):
            raise DuplicateOperation(self.duplicate_message)
        items.insert(0, self.build(caller_id, payload))
        return items

    def remove(self, aggregate: A, caller_id: str, key: Optional[str] = None) -> list[T]:
        """Remove the first element matching key. Returns the updated collection.

        Raises the configured missing error (NotFound by default) when nothing
        matches, and Unauthorized when the matched element belongs to someone
        other than caller_id. The collection is untouched on either failure.
        """
        items = self.accessor(aggregate)
        index = self.find(items, caller_id, key)
        if index is None:
            raise self.missing_error(self.missing_message)
        if self.owner_of is not None and self.owner_of(aggregate, items[index]) != caller_id:
            raise Unauthorized(self.unauthorized_message)
        del items[index]
        return items

    def find(self, items: list[T], caller_id: str, key: Optional[str] = None) -> Optional[int]:
        """Return the index of the first element matching key, or None."""
        for index, item in enumerate(items):
            if self.matches(item, key, caller_id):
                return index
        return None


def _match_by_id(item: Any, key: Optional[str], caller_id: str) -> bool:
    return getattr(item, "id", None) == key
