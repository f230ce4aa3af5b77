"""Read-time projection of goods onto the fields meaningful for their type."""

from collections.abc import Mapping
from typing import Any, Dict, FrozenSet, Iterable, List

from modules.goods.types import GOOD_TYPES, GoodType

_HIDDEN_FIELDS: Dict[GoodType, FrozenSet[str]] = {
    GoodType.RAW: frozenset({"price"}),
    GoodType.SEMI_FINISHED: frozenset({"price", "vendor"}),
    GoodType.FINISHED: frozenset({"vendor"}),
}


def redact(good: Mapping) -> Dict[str, Any]:
    """Return a copy of ``good`` without the fields its type does not use.

    The input is never modified. Goods of an unrecognised type come back unchanged.
    """
    good_type = good.get("type")
    if not isinstance(good_type, str) or good_type not in GOOD_TYPES:
        return dict(good)
    hidden = _HIDDEN_FIELDS[GoodType(good_type)]
    return {key: value for key, value in good.items() if key not in hidden}


def redact_many(goods: Iterable[Mapping]) -> List[Dict[str, Any]]:
    return [redact(good) for good in goods]
