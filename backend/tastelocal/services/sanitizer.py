# FILE: backend/tastelocal/services/sanitizer.py
# TASTELOCAL - WRITE SANITIZER
# The document store rejects the "absent" marker at any depth. An explicit None is a
# deliberate clear and must survive; only ABSENT is removed.

from collections.abc import Mapping
from typing import Any

from ..models.common import ABSENT


def clean(value: Any) -> Any:
    """
    Recursively strips ABSENT from a nested structure of scalars, lists/tuples and mappings.

    - Mapping keys whose cleaned value is ABSENT are dropped; None values are kept.
    - Sequence elements whose cleaned form is ABSENT are dropped; None elements are kept.
    - Tuples come back as lists. Scalars (including None, "", 0 and False) pass through.

    Idempotent: clean(clean(x)) == clean(x).
    """
    if value is ABSENT or value is None:
        return value

    if isinstance(value, Mapping):
        cleaned = {}
        for key, item in value.items():
            cleaned_item = clean(item)
            if cleaned_item is not ABSENT:
                cleaned[key] = cleaned_item
        return cleaned

    if isinstance(value, (list, tuple)):
        return [cleaned_item for cleaned_item in (clean(item) for item in value) if cleaned_item is not ABSENT]

    return value
