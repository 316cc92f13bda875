"""
Change tracking for directory entries.

Given the snapshot of an entry as it was loaded from the server and the
snapshot the caller has been editing, :py:func:`compute_modifications` returns
the ordered list of :py:class:`Modification` objects that turns the former
into the latter.
"""

from enum import IntEnum
from typing import NamedTuple

from .attributes import AttributeStore
from .typing import AttributeValue


class Operation(IntEnum):
    """
    The kind of change a :py:class:`Modification` describes.

    The numeric values are the batch modify codes our transports expect.
    :py:class:`ldapentry.transport.LdapTransport` translates them into
    python-ldap's ``MOD_*`` constants.
    """

    #: The attribute is new to the entry
    ADD = 1
    #: The attribute is to be deleted from the entry
    REMOVE = 2
    #: The attribute's values are to be replaced
    REPLACE = 3


class Modification(NamedTuple):
    """
    One atomic change to apply to a directory entry.
    """

    #: The attribute name
    attribute: str
    #: The new values.  For :py:attr:`Operation.REMOVE` this is ``[None]``
    values: list[AttributeValue]
    #: What to do with ``values``
    operation: Operation


def normalize(value: AttributeValue) -> list[AttributeValue]:
    """
    Wrap a scalar as a one element list.  Lists pass through untouched and
    tuples are converted to lists.

    Args:
        value: the attribute value

    Returns:
        The value as a list of scalars.

    """
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    return [value]


def compute_modifications(
    raw: AttributeStore, current: AttributeStore
) -> list[Modification]:
    """
    Diff ``current`` against ``raw``.

    Only keys in ``current`` are considered, in ``current``'s insertion
    order.  An attribute that exists only in ``raw`` is left alone: to delete
    an attribute, set it to ``None`` in ``current``.

    Args:
        raw: the last known server state
        current: the caller's working copy

    Returns:
        The modifications, possibly empty.

    """
    modifications: list[Modification] = []
    for key in current:
        value = current.get(key)
        if value is None:
            modifications.append(Modification(key, [None], Operation.REMOVE))
        elif not raw.has(key):
            modifications.append(Modification(key, normalize(value), Operation.ADD))
        elif normalize(raw.get(key)) != normalize(value):
            modifications.append(
                Modification(key, normalize(value), Operation.REPLACE)
            )
    return modifications
