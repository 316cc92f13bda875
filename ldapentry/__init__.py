"""
Diff-aware LDAP directory entries.
"""

from .attributes import AttributeStore
from .entry import Entry
from .modifications import Modification, Operation, compute_modifications, normalize
from .validators import (
    MissingAttributeError,
    RequiredAttributesValidator,
    format_missing_field_error,
)

__version__ = "1.0.0"

__all__ = [
    "AttributeStore",
    "Entry",
    "MissingAttributeError",
    "Modification",
    "Operation",
    "RequiredAttributesValidator",
    "compute_modifications",
    "format_missing_field_error",
    "normalize",
]
