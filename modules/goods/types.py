from enum import Enum


class GoodType(str, Enum):
    RAW = "raw"
    SEMI_FINISHED = "semi-finished"
    FINISHED = "finished"


GOOD_TYPES = frozenset(t.value for t in GoodType)


def parse_good_type(value) -> GoodType:
    """Return the GoodType for ``value`` or raise ValueError."""
    if isinstance(value, GoodType):
        return value
    if not isinstance(value, str) or value not in GOOD_TYPES:
        raise ValueError(f"Unknown good type: {value!r}")
    return GoodType(value)
