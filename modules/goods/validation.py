"""Structural validation of good creation requests.

Purely local: nothing here touches the repository. Every property and component
entry is checked, and all errors are collected before the candidate is rejected.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import TypeAdapter, ValidationError

from core.errors import ValidationAppException
from modules.goods.schemas import Good

_good_adapter = TypeAdapter(Good)


def parse_candidate(candidate: Any) -> Good:
    """Build the typed good variant for ``candidate``.

    Raises ValidationAppException carrying the collected pydantic errors when the
    shape is wrong, the type is unknown, or a variant-specific field is missing.
    """
    if not isinstance(candidate, Mapping):
        raise ValidationAppException("Good must be an object")
    try:
        return _good_adapter.validate_python(dict(candidate))
    except ValidationError as exc:
        raise ValidationAppException(
            "Failed while validating good",
            errors=exc.errors(include_url=False, include_input=False),
        ) from exc


def validate(candidate: Any) -> bool:
    try:
        parse_candidate(candidate)
    except ValidationAppException:
        return False
    return True
