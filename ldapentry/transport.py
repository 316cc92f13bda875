# mypy: disable-error-code="attr-defined"
"""
Transports: the objects that carry entry changes to a directory server.

:py:class:`Transport` is the interface :py:class:`~ldapentry.entry.Entry`
needs.  :py:class:`LdapTransport` implements it with python-ldap, configured
from ``settings.LDAP_SERVERS``.
"""

import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from functools import wraps
from pathlib import Path
from typing import Any, Protocol

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from ldap import modlist

from ldapentry import ldap

from .modifications import Modification, Operation, normalize
from .typing import AddModlist, AttributeMap, AttributeValue, LDAPData, ModifyModList

logger = logging.getLogger("django-ldapentry")


class Transport(Protocol):
    """
    What an :py:class:`~ldapentry.entry.Entry` needs from a directory client.

    Each method returns ``True`` on success.  Failures should be raised, and
    :py:class:`~ldapentry.entry.Entry` lets them propagate untouched.
    """

    def add(self, dn: str | None, attributes: AttributeMap) -> bool: ...

    def modify_batch(self, dn: str | None, modifications: list[Modification]) -> bool: ...

    def delete(self, dn: str | None) -> bool: ...


# -----------------------
# Decorators
# -----------------------


def atomic(key: str = "read") -> Callable:
    """
    Decorator to wrap methods that need to talk to an LDAP server.

    Opens a connection for the current thread before the call and closes it
    afterwards, unless the thread already has one.

    Args:
        key: Either "read" or "write". Determines which LDAP server to use.

    """

    def real_decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(self, *args, **kwargs) -> Any:
            if self.has_connection():
                return func(self, *args, **kwargs)
            self.connect(key)
            try:
                retval = func(self, *args, **kwargs)
            finally:
                self.disconnect()
            return retval

        return wrapper

    return real_decorator


# -----------------------
# Value conversion
# -----------------------


def encode_value(value: AttributeValue) -> bytes:
    """
    Convert a single attribute value into the bytes python-ldap wants.
    """
    if isinstance(value, bytes):
        return value
    if isinstance(value, bool):
        return b"TRUE" if value else b"FALSE"
    return str(value).encode("utf-8")


def encode_values(value: AttributeValue) -> list[bytes]:
    return [encode_value(v) for v in normalize(value) if v is not None]


def decode_values(values: Sequence[bytes]) -> list[AttributeValue]:
    """
    Decode the values of an attribute as returned by a search.  Values that
    are not UTF-8 (``objectGUID``, ``jpegPhoto``, ...) stay as bytes.
    """
    decoded: list[AttributeValue] = []
    for value in values:
        try:
            decoded.append(value.decode("utf-8"))
        except UnicodeDecodeError:
            decoded.append(value)
    return decoded


class Modlist:
    """
    Helper for turning entry data into python-ldap modlists.
    """

    #: How each :py:class:`~ldapentry.modifications.Operation` is sent
    operations: dict[Operation, int] = {  # noqa: RUF012
        Operation.ADD: ldap.MOD_ADD,
        Operation.REPLACE: ldap.MOD_REPLACE,
        Operation.REMOVE: ldap.MOD_DELETE,
    }

    def add(self, attributes: Mapping[str, AttributeValue]) -> AddModlist:
        """
        Convert an attribute mapping to a modlist suitable for passing to
        ``add_s``.  Attributes with no values are left out.

        Args:
            attributes: the entry's attributes

        Returns:
            The modlist for the add operation.

        """
        data = {}
        for key, value in attributes.items():
            if key.lower() in ("dn", "distinguishedname"):
                continue
            encoded = encode_values(value)
            if encoded:
                data[key] = encoded
        return modlist.addModlist(data)

    def update(self, modifications: Sequence[Modification]) -> ModifyModList:
        """
        Convert a list of :py:class:`~ldapentry.modifications.Modification`
        to a modlist suitable for passing to ``modify_s``, preserving order.

        Args:
            modifications: the changes to send

        Returns:
            A list of LDAP modifications to apply to the object.

        """
        _modlist: ModifyModList = []
        for modification in modifications:
            op = self.operations[Operation(modification.operation)]
            if op == ldap.MOD_DELETE:
                _modlist.append((op, modification.attribute, None))
            else:
                _modlist.append(
                    (op, modification.attribute, encode_values(modification.values))
                )
        return _modlist


class LdapTransport:
    """
    A :py:class:`Transport` that talks to an LDAP server with python-ldap.

    Connection settings come from ``settings.LDAP_SERVERS[server]``, which
    must have a ``read`` and a ``write`` sub-dict::

        LDAP_SERVERS = {
            "default": {
                "read": {"url": "ldap://ldap.example.com", "user": ..., "password": ...},
                "write": {"url": "ldap://ldap.example.com", "user": ..., "password": ...},
            }
        }

    Each thread gets its own connection.

    Keyword Args:
        server: the key in ``settings.LDAP_SERVERS`` to use.  Defaults to
            ``settings.LDAPENTRY_DEFAULT_SERVER``, or ``"default"``.

    Raises:
        ImproperlyConfigured: ``settings.LDAP_SERVERS`` is missing or has no
            ``server`` key

    """

    def __init__(self, server: str | None = None) -> None:
        if server is None:
            server = getattr(settings, "LDAPENTRY_DEFAULT_SERVER", "default")
        self.server: str = server
        try:
            self.config: dict[str, Any] = settings.LDAP_SERVERS[server]
        except AttributeError as e:
            msg = "settings.LDAP_SERVERS does not exist!"
            raise ImproperlyConfigured(msg) from e
        except KeyError as e:
            msg = f"settings.LDAP_SERVERS has no key '{server}'"
            raise ImproperlyConfigured(msg) from e
        self.logger = logger
        # keys in this dictionary get manipulated by .connect() and .disconnect()
        self._ldap_objects: dict[threading.Thread, ldap.ldapobject.LDAPObject] = {}  # type: ignore[name-defined]

    # ------------------------
    # Connection management
    # ------------------------

    def has_connection(self) -> bool:
        return threading.current_thread() in self._ldap_objects

    @property
    def connection(self) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
        return self._ldap_objects[threading.current_thread()]

    def disconnect(self) -> None:
        """
        Unbind and forget the current thread's LDAP connection.
        """
        self.connection.unbind_s()
        del self._ldap_objects[threading.current_thread()]

    def _check_file(self, path: str, label: str) -> None:
        filename = Path(path)
        if not filename.exists():
            msg = f"{label} file does not exist: {path}"
            raise OSError(msg)
        if not filename.is_file():
            msg = f"{label} file is not a file: {path}"
            raise OSError(msg)

    def _connect(self, key: str) -> ldap.ldapobject.LDAPObject:  # type: ignore[name-defined]
        """
        Create, configure and bind a new LDAP connection.

        Args:
            key: Either "read" or "write"

        Raises:
            ImproperlyConfigured: our config has no ``key`` section, or
                ``tls_verify`` is not one of ``never`` or ``always``
            OSError: a configured TLS file does not exist or is not a file

        Returns:
            A bound LDAPObject.

        """
        try:
            config = self.config[key]
        except KeyError as e:
            msg = f"settings.LDAP_SERVERS['{self.server}'] has no '{key}' key"
            raise ImproperlyConfigured(msg) from e
        ldap_object = ldap.initialize(config["url"])
        ldap_object.set_option(
            ldap.OPT_REFERRALS, 1 if config.get("follow_referrals", False) else 0
        )
        ldap_object.set_option(
            ldap.OPT_NETWORK_TIMEOUT, float(config.get("timeout", 15.0))
        )
        if sizelimit := config.get("sizelimit", None):
            ldap_object.set_option(ldap.OPT_SIZELIMIT, int(sizelimit))
        tls_verify = config.get("tls_verify", "never")
        if tls_verify == "never":
            ldap_object.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_NEVER)
        elif tls_verify == "always":
            ldap_object.set_option(ldap.OPT_X_TLS_REQUIRE_CERT, ldap.OPT_X_TLS_DEMAND)
        else:
            msg = f"Invalid tls_verify value: {tls_verify}"
            raise ImproperlyConfigured(msg)
        for option, setting, label in (
            (ldap.OPT_X_TLS_CACERTFILE, "tls_ca_certfile", "CA Certificate"),
            (ldap.OPT_X_TLS_CERTFILE, "tls_certfile", "TLS Certificate"),
            (ldap.OPT_X_TLS_KEYFILE, "tls_keyfile", "TLS Key"),
        ):
            if path := config.get(setting, None):
                self._check_file(path, label)
                ldap_object.set_option(option, path)
        ldap_object.set_option(ldap.OPT_X_TLS_NEWCTX, 0)
        if config.get("use_starttls", True):
            ldap_object.start_tls_s()
        ldap_object.simple_bind_s(config.get("user"), config.get("password"))
        return ldap_object

    def connect(self, key: str) -> None:
        """
        Set the per-thread LDAP connection object.  Used by :py:func:`atomic`.
        """
        self._ldap_objects[threading.current_thread()] = self._connect(key)

    # ------------------------
    # Operations
    # ------------------------

    @atomic(key="read")
    def get_by_dn(self, dn: str, attrlist: list[str] | None = None) -> LDAPData:
        """
        Read one object from the directory, ready for
        :py:meth:`ldapentry.entry.Entry.from_db`.

        Args:
            dn: the distinguished name of the object

        Keyword Args:
            attrlist: the attributes to retrieve; all of them if ``None``

        Raises:
            ldap.NO_SUCH_OBJECT: there is no object at ``dn``

        Returns:
            A ``(dn, attrs)`` tuple whose values are lists, decoded from UTF-8
            where possible.

        """
        results = self.connection.search_s(
            dn, ldap.SCOPE_BASE, "(objectClass=*)", attrlist
        )
        for result_dn, attrs in results:
            # AD returns referrals with no attribute dict; skip them
            if isinstance(attrs, dict):
                return (
                    result_dn,
                    {key: decode_values(values) for key, values in attrs.items()},
                )
        raise ldap.NO_SUCH_OBJECT({"desc": "No such object", "matched": dn})

    @atomic(key="write")
    def add(self, dn: str | None, attributes: AttributeMap) -> bool:
        """
        Create a new object in the directory.

        Args:
            dn: the distinguished name of the new object
            attributes: its attributes

        Returns:
            ``True``.  Errors from the server are raised as ``ldap.LDAPError``.

        """
        self.connection.add_s(dn, Modlist().add(attributes))
        self.logger.info("ldapentry.transport.add.success dn=%s", dn)
        return True

    @atomic(key="write")
    def modify_batch(self, dn: str | None, modifications: list[Modification]) -> bool:
        """
        Apply ``modifications`` to the object at ``dn``, in order.

        An empty ``modifications`` list succeeds without contacting the server
        beyond the bind.

        Args:
            dn: the distinguished name of the object
            modifications: the changes, from
                :py:meth:`ldapentry.entry.Entry.get_modifications`

        Returns:
            ``True``.  Errors from the server are raised as ``ldap.LDAPError``.

        """
        _modlist = Modlist().update(modifications)
        if _modlist:
            # Only issue the modify_s if we actually have changes
            self.connection.modify_s(dn, _modlist)
            self.logger.info(
                "ldapentry.transport.modify.success dn=%s changes=%d", dn, len(_modlist)
            )
        else:
            self.logger.debug("ldapentry.transport.modify.no-changes dn=%s", dn)
        return True

    @atomic(key="write")
    def delete(self, dn: str | None) -> bool:
        """
        Delete the object at ``dn``.
        """
        self.connection.delete_s(dn)
        self.logger.info("ldapentry.transport.delete.success dn=%s", dn)
        return True
