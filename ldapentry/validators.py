from collections.abc import Iterable

from django.core.exceptions import ValidationError

from .attributes import AttributeStore


def format_missing_field_error(name: str) -> str:
    """
    Return the error message for a required attribute that has no value.
    """
    return f"Missing compulsory field [{name}]"


class MissingAttributeError(ValidationError):
    """
    Raised when a required attribute has no value.

    Args:
        attribute: the name of the missing attribute

    Keyword Args:
        code: the validation error code

    """

    def __init__(self, attribute: str, code: str = "required") -> None:
        #: The name of the missing attribute
        self.attribute = attribute
        super().__init__(format_missing_field_error(attribute), code=code)


class RequiredAttributesValidator:
    """
    Ensure that a set of attributes are not ``None`` in an
    :py:class:`~ldapentry.attributes.AttributeStore`.

    The first missing attribute stops validation; we don't collect all of
    them.

    Args:
        required: the names of the required attributes

    Keyword Args:
        code: The code to put on the raised ``ValidationError``.

    """

    #: The code to use on the raised ``ValidationError``.
    code: str = "required"

    def __init__(self, required: Iterable[str] = (), code: str | None = None) -> None:
        self.required: list[str] = list(required)
        if code is not None:
            self.code = code

    def _check(self, store: AttributeStore, name: str) -> None:
        if store.get(name) is None:
            raise MissingAttributeError(name, code=self.code)

    def __call__(
        self, store: AttributeStore, only: Iterable[str] | None = None
    ) -> bool:
        """
        Validate ``store``.

        Args:
            store: the attributes to check

        Keyword Args:
            only: if non-empty, check just these names.  Names that are not in
                our required list are ignored.

        Raises:
            MissingAttributeError: a required attribute is ``None``

        Returns:
            ``True`` if everything is present.

        """
        names = list(only) if only else []
        if names:
            names = [name for name in names if name in self.required]
        else:
            names = self.required
        for name in names:
            self._check(store, name)
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RequiredAttributesValidator):
            return False
        return self.required == other.required and self.code == other.code

    __hash__ = None  # type: ignore[assignment]
