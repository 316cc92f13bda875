"""
Attribute storage for directory entries.

This module provides :py:class:`AttributeStore`, the key to value(s) container
that backs both snapshots of an :py:class:`~ldapentry.entry.Entry`.  Directory
attributes are inherently multi-valued, so a value is usually a list of
scalars, but scalars and ``None`` are stored as given.
"""

from collections.abc import Iterator, Mapping, Sequence
from contextlib import suppress
from typing import Any

from .typing import AttributeMap, AttributeValue


def lookup(value: AttributeValue, sub_key: Any) -> AttributeValue:
    """
    Return ``value[sub_key]`` if ``value`` is an indexable container that
    holds ``sub_key``, otherwise ``None``.

    Strings and bytes are attribute scalars, so we never index into them.

    Args:
        value: the stored attribute value
        sub_key: a list index or mapping key

    Returns:
        The nested value, or ``None``.

    """
    if isinstance(value, (str, bytes)):
        return None
    if not isinstance(value, (Sequence, Mapping)):
        return None
    with suppress(IndexError, KeyError, TypeError):
        return value[sub_key]
    return None


def contains(value: AttributeValue, sub_key: Any) -> bool:
    """
    Return ``True`` if ``value`` is an indexable container holding ``sub_key``.

    For sequences ``sub_key`` is a position, for mappings it is a key.
    """
    if isinstance(value, (str, bytes)):
        return False
    if isinstance(value, Mapping):
        return sub_key in value
    if isinstance(value, Sequence):
        if not isinstance(sub_key, int) or isinstance(sub_key, bool):
            return False
        return -len(value) <= sub_key < len(value)
    return False


class AttributeStore:
    """
    A mapping of attribute names to attribute values.

    Reads are total: asking for an attribute that is not there returns
    ``None`` rather than raising.  No validation is done on write; see
    :py:mod:`ldapentry.validators` for that.

    Keyword Args:
        attributes: the initial contents of the store

    """

    def __init__(self, attributes: Mapping[str, AttributeValue] | None = None) -> None:
        self._attributes: AttributeMap = {}
        if attributes:
            self.replace_all(attributes)

    def get(self, key: str, sub_key: Any = None) -> AttributeValue:
        """
        Return the value stored under ``key``.

        Args:
            key: the attribute name

        Keyword Args:
            sub_key: if given, return the item at this index (or key) of the
                stored value instead of the whole value

        Returns:
            The value, or ``None`` if it (or the nested item) is absent.

        """
        value = self._attributes.get(key)
        if sub_key is None:
            return value
        return lookup(value, sub_key)

    def get_all(self) -> AttributeMap:
        """
        Return a shallow copy of all our attributes.
        """
        return dict(self._attributes)

    def set(self, key: str, value: AttributeValue) -> "AttributeStore":
        """
        Insert or replace the value for ``key``.

        Args:
            key: the attribute name
            value: a scalar, a sequence of scalars or ``None``

        Returns:
            This store, for chaining.

        """
        self._attributes[key] = value
        return self

    def remove(self, key: str) -> "AttributeStore":
        """
        Drop ``key`` from the store entirely.  Missing keys are ignored.
        """
        self._attributes.pop(key, None)
        return self

    def replace_all(self, attributes: Mapping[str, AttributeValue]) -> "AttributeStore":
        """
        Throw away our current contents and replace them with ``attributes``.

        Args:
            attributes: the new contents of the store

        Returns:
            This store, for chaining.

        """
        self._attributes = dict(attributes)
        return self

    def has(self, key: str, sub_key: Any = None) -> bool:
        """
        Test whether ``key`` is present, and optionally whether the value at
        ``key`` holds ``sub_key``.

        Args:
            key: the attribute name

        Keyword Args:
            sub_key: a list index or mapping key to look for inside the value

        Returns:
            ``True`` if present, ``False`` otherwise.

        """
        if key not in self._attributes:
            return False
        if sub_key is None:
            return True
        return contains(self._attributes[key], sub_key)

    def count(self) -> int:
        """
        Return the number of attributes in the store.
        """
        return len(self._attributes)

    def __contains__(self, key: object) -> bool:
        return key in self._attributes

    def __iter__(self) -> Iterator[str]:
        return iter(self._attributes)

    def __len__(self) -> int:
        return self.count()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AttributeStore):
            return self._attributes == other._attributes
        if isinstance(other, Mapping):
            return self._attributes == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self._attributes!r}>"
