from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field, StrictStr, constr, validator


# Largest id a 64-bit signed INTEGER column can hold
MAX_ID = 2**63 - 1


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def positive_number(value):
    if not _is_number(value):
        raise ValueError("must be a number")
    if not value > 0:
        raise ValueError("must be greater than 0")
    return value


class Property(BaseModel):
    name: StrictStr = Field(..., description="Property name")
    value: StrictStr = Field(..., description="Property value, may be empty")


class ComponentRef(BaseModel):
    """By-id reference to another good; resolved against the repository, never owned."""

    id: int = Field(..., description="Id of the component good")
    quantity: float = Field(..., description="Units of the component consumed")

    @validator("id", pre=True)
    def check_id(cls, v):
        if not _is_number(v) or not v > 0 or (isinstance(v, float) and not v.is_integer()):
            raise ValueError("component id must be a positive integer")
        if v > MAX_ID:
            raise ValueError(f"component id must not exceed {MAX_ID}")
        return int(v)

    @validator("quantity", pre=True)
    def check_quantity(cls, v):
        return positive_number(v)


class GoodBase(BaseModel):
    name: constr(strict=True, min_length=1)
    cost: float
    process_time: float = Field(..., alias="processTime")
    properties: List[Property] = Field(default_factory=list)
    components: List[ComponentRef] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    @validator("cost", "process_time", pre=True)
    def check_positive(cls, v):
        return positive_number(v)

    @validator("properties", "components", pre=True)
    def none_as_empty(cls, v):
        return [] if v is None else v


class RawGood(GoodBase):
    type: Literal["raw"]
    vendor: StrictStr


class SemiFinishedGood(GoodBase):
    type: Literal["semi-finished"]


class FinishedGood(GoodBase):
    type: Literal["finished"]
    price: float

    @validator("price", pre=True)
    def check_price(cls, v):
        return positive_number(v)


Good = Annotated[Union[RawGood, SemiFinishedGood, FinishedGood], Field(discriminator="type")]

# Fields a caller may overwrite through update-by-id
UPDATABLE_FIELDS = frozenset(
    {"name", "cost", "processTime", "process_time", "vendor", "price", "properties", "components"}
)


def variant_fields(good: GoodBase) -> frozenset:
    """Field names and aliases that belong to the variant of ``good``."""
    names = set()
    for name, field in type(good).model_fields.items():
        names.add(name)
        if field.alias:
            names.add(field.alias)
    return frozenset(names)
