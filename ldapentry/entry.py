"""
Diff-aware directory entries.

This module provides :py:class:`Entry`, which keeps two
:py:class:`~ldapentry.attributes.AttributeStore` snapshots of a directory
object -- what the server last told us, and what the caller has done to it
since -- and persists the difference through a
:py:class:`~ldapentry.transport.Transport`.
"""

import logging
from collections.abc import Iterable, Mapping
from copy import deepcopy
from typing import TYPE_CHECKING, Any, Optional

from django.core.exceptions import ImproperlyConfigured

from .attributes import AttributeStore
from .modifications import Modification, compute_modifications
from .typing import AttributeMap, AttributeValue, LDAPData
from .validators import RequiredAttributesValidator

if TYPE_CHECKING:
    from .transport import Transport

logger = logging.getLogger("django-ldapentry")


class Entry:
    """
    A single directory object.

    A new ``Entry`` is one we intend to create: ``exists`` is ``False`` and
    :py:meth:`save` will ``add`` it.  Once it has been hydrated with
    :py:meth:`set_raw_attributes` (or built with :py:meth:`from_db`),
    :py:meth:`save` will instead send only what changed.

    Attributes are read and written with :py:meth:`get` and :py:meth:`set`.
    To delete an attribute on the server, set it to ``None`` (or call
    :py:meth:`unset`); simply never mentioning it leaves it alone.

    Keyword Args:
        attributes: initial attributes for a new entry
        transport: the object that talks to the directory server

    """

    #: Attributes we look in, in order, for our distinguished name
    dn_attributes: tuple[str, ...] = ("distinguishedname", "dn")

    def __init__(
        self,
        attributes: Mapping[str, AttributeValue] | None = None,
        transport: Optional["Transport"] = None,
    ) -> None:
        self.transport = transport
        self.exists: bool = False
        self.raw = AttributeStore()
        self.current = AttributeStore(attributes)
        self.validator = RequiredAttributesValidator()

    @classmethod
    def from_db(
        cls,
        data: LDAPData | tuple[str, AttributeMap],
        transport: Optional["Transport"] = None,
    ) -> "Entry":
        """
        Build a hydrated entry from a python-ldap style ``(dn, attrs)`` tuple.

        The dn is stored as the ``dn`` attribute unless ``attrs`` already has
        one.

        Args:
            data: the ``(dn, attrs)`` tuple

        Keyword Args:
            transport: the object that talks to the directory server

        Returns:
            A new entry with ``exists`` set.

        """
        dn, attrs = data
        attributes: AttributeMap = dict(attrs)
        if not any(key in attributes for key in cls.dn_attributes):
            attributes["dn"] = dn
        return cls(transport=transport).set_raw_attributes(attributes)

    # ------------------------
    # Attribute access
    # ------------------------

    def get(self, key: str, sub_key: Any = None) -> AttributeValue:
        """
        Return the current value of ``key``, or ``None``.

        See :py:meth:`ldapentry.attributes.AttributeStore.get`.
        """
        return self.current.get(key, sub_key)

    def get_attributes(self) -> AttributeMap:
        return self.current.get_all()

    def set(self, key: str, value: AttributeValue) -> "Entry":
        self.current.set(key, value)
        return self

    def unset(self, key: str) -> "Entry":
        """
        Mark ``key`` for deletion on the next :py:meth:`save`.
        """
        return self.set(key, None)

    def has(self, key: str, sub_key: Any = None) -> bool:
        return self.current.has(key, sub_key)

    def count(self) -> int:
        return self.current.count()

    def set_raw_attributes(self, attributes: Mapping[str, AttributeValue]) -> "Entry":
        """
        Hydrate this entry with data from the directory server.

        Every value in ``attributes`` is expected to be a list, as it comes
        back from a search.

        Args:
            attributes: the attributes as the server has them

        Returns:
            This entry, for chaining.

        """
        self.raw.replace_all(attributes)
        self.current.replace_all(deepcopy(self.raw.get_all()))
        self.exists = True
        return self

    def get_dn(self) -> str | None:
        """
        Return our distinguished name, or ``None`` if we don't have one yet.
        """
        for key in self.dn_attributes:
            value = self.get(key)
            if isinstance(value, (list, tuple)):
                value = value[0] if value else None
            if value:
                return value
        return None

    def set_dn(self, dn: str) -> "Entry":
        return self.set("dn", dn)

    dn = property(get_dn)

    # ------------------------
    # Validation
    # ------------------------

    @property
    def required(self) -> list[str]:
        return self.validator.required

    def set_required(self, names: Iterable[str]) -> "Entry":
        """
        Declare which attributes must not be ``None`` before we persist.

        Args:
            names: the attribute names

        Returns:
            This entry, for chaining.

        """
        self.validator = RequiredAttributesValidator(names)
        return self

    def validate_required(self, only: Iterable[str] | None = None) -> bool:
        """
        Check our current attributes against our required attributes.

        Keyword Args:
            only: if non-empty, validate only these attributes.  Names that
                were never declared required are ignored.

        Raises:
            django.core.exceptions.ValidationError: a required attribute is
                ``None``

        Returns:
            ``True`` if all checked attributes have values.

        """
        return self.validator(self.current, only=only)

    # ------------------------
    # Change tracking
    # ------------------------

    def get_modifications(self) -> list[Modification]:
        """
        Return the changes needed to turn our raw attributes into our current
        attributes.

        Returns:
            A list of :py:class:`~ldapentry.modifications.Modification`, in
            the order the attributes appear in our current attributes.

        """
        return compute_modifications(self.raw, self.current)

    def is_dirty(self) -> bool:
        return bool(self.get_modifications())

    def sync_raw(self) -> "Entry":
        """
        Make our current attributes the new baseline.  Attributes that were
        set to ``None`` are gone on the server now, so we drop them.
        """
        attributes = {
            key: value
            for key, value in self.current.get_all().items()
            if value is not None
        }
        self.raw.replace_all(deepcopy(attributes))
        self.current.replace_all(attributes)
        return self

    # ------------------------
    # Persistence
    # ------------------------

    def _get_transport(self) -> "Transport":
        if self.transport is None:
            msg = f"{self.__class__.__name__} has no transport to persist with"
            raise ImproperlyConfigured(msg)
        return self.transport

    def save(self) -> bool:
        """
        Create this entry on the server if it doesn't exist yet, otherwise
        send our modifications.

        Returns:
            Whatever the transport returned.

        """
        if self.exists:
            return self.update()
        return self.create()

    def create(self) -> bool:
        """
        Add this entry to the directory.

        Raises:
            django.core.exceptions.ValidationError: a required attribute is
                ``None``
            django.core.exceptions.ImproperlyConfigured: we have no transport

        Returns:
            Whatever the transport's ``add`` returned.

        """
        transport = self._get_transport()
        self.validate_required()
        dn = self.get_dn()
        if transport.add(dn, self.get_attributes()):
            self.sync_raw()
            self.exists = True
            logger.info("ldapentry.entry.create.success dn=%s", dn)
            return True
        return False

    def update(self) -> bool:
        """
        Send our modifications to the directory.  The transport is called even
        if there are no modifications.

        Raises:
            django.core.exceptions.ValidationError: a required attribute is
                ``None``
            django.core.exceptions.ImproperlyConfigured: we have no transport

        Returns:
            Whatever the transport's ``modify_batch`` returned.

        """
        transport = self._get_transport()
        self.validate_required()
        dn = self.get_dn()
        modifications = self.get_modifications()
        if not modifications:
            logger.debug("ldapentry.entry.update.no-changes dn=%s", dn)
        if transport.modify_batch(dn, modifications):
            self.sync_raw()
            return True
        return False

    def delete(self) -> bool:
        """
        Remove this entry from the directory.

        Returns:
            Whatever the transport's ``delete`` returned.

        """
        transport = self._get_transport()
        dn = self.get_dn()
        if transport.delete(dn):
            self.exists = False
            logger.info("ldapentry.entry.delete.success dn=%s", dn)
            return True
        return False

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self}>"

    def __str__(self) -> str:
        return f"{self.__class__.__name__} object ({self.get_dn()})"
