"""
ldapentry type definitions.

Type aliases for attribute values as they live in an
:py:class:`~ldapentry.attributes.AttributeStore` and for the python-ldap
modlists built from them.
"""

from typing import Any

#: A single attribute value: a scalar, ``None`` or an ordered sequence of scalars
AttributeValue = Any
AttributeMap = dict[str, AttributeValue]

DeleteModListEntry = tuple[int, str, None]
ModifyModListEntry = tuple[int, str, list[bytes]]
ModifyModList = list[DeleteModListEntry | ModifyModListEntry]
AddModlist = list[tuple[str, list[bytes]]]
LDAPData = tuple[str, dict[str, list[bytes]]]
