from __future__ import annotations

import enum
import functools
from decimal import ROUND_UP, Decimal, localcontext
from typing import Annotated, Any, Literal, Union

import pydantic as pd

from kube_waste.core.exceptions import ParseError
from kube_waste.utils import resource_units


class ResourceType(str, enum.Enum):
    """The type of resource.

    CPU is measured in cores, memory in bytes.
    """

    CPU = "cpu"
    Memory = "memory"


QuantityValueRaw = Union["Quantity", str, int, float, Decimal, None]


@functools.total_ordering
class Quantity(pd.BaseModel):
    """An exact amount of CPU or memory, as declared in a pod spec or reported by the metrics API.

    The amount is kept as a Decimal, so additions never drift. Ratios are computed from `milli_value`,
    an integer, and floats only appear once a percentage is calculated.

    Two quantities are equal when their amounts and resource types are equal,
    regardless of the unit they were written in (`1Ki == 1024`).
    Comparing with a plain number compares the amount (`quantity == 0`).
    """

    model_config = pd.ConfigDict(frozen=True)

    amount: Decimal
    resource_type: ResourceType
    base: Literal[1024, 1000] = 1000

    @classmethod
    def zero(cls, resource_type: ResourceType) -> Quantity:
        return cls(amount=Decimal(0), resource_type=resource_type)

    @classmethod
    def parse(cls, value: QuantityValueRaw, resource_type: ResourceType) -> Quantity:
        """Build a quantity from a value coming from the Kubernetes API.

        Args:
            value: A quantity string ("500m", "128Mi", "1e3"), a number, or None for "not set".
            resource_type: The resource the value measures.

        Returns:
            The parsed quantity.

        Raises:
            ParseError: If the value is not a valid quantity.
        """

        if isinstance(value, Quantity):
            if value.resource_type != resource_type:
                raise ParseError(f"Expected a {resource_type.value} quantity, got {value.resource_type.value}")
            return value

        if value is None or value == "":
            return cls.zero(resource_type)

        # NOTE: bool is a subclass of int, but `True` is not a quantity
        if isinstance(value, bool):
            raise ParseError(f"Invalid {resource_type.value} quantity: {value!r}")

        if isinstance(value, (int, float, Decimal)):
            # numbers go through the same range and precision checks as quantity strings
            try:
                parsed = resource_units.parse(str(value))
            except ValueError as e:
                raise ParseError(f"Invalid {resource_type.value} quantity: {value!r}") from e
            if parsed is None:
                raise ParseError(f"Invalid {resource_type.value} quantity: {value!r}")
            return cls(amount=parsed[0], resource_type=resource_type)

        if isinstance(value, str):
            parsed = resource_units.parse(value)
            if parsed is None:
                raise ParseError(f"Invalid {resource_type.value} quantity: {value!r}")
            amount, base = parsed
            return cls(amount=amount, resource_type=resource_type, base=base)

        raise ParseError(f"Unsupported {resource_type.value} quantity type: {type(value).__name__}")

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def milli_value(self) -> int:
        """The amount in milli-units, rounded up if it is finer than that."""

        with localcontext(resource_units.CONTEXT):
            return int((self.amount * 1000).to_integral_value(rounding=ROUND_UP))

    @property
    def value(self) -> int:
        """The amount in whole units, rounded up."""

        with localcontext(resource_units.CONTEXT):
            return int(self.amount.to_integral_value(rounding=ROUND_UP))

    def add(self, other: Quantity) -> Quantity:
        if other.resource_type != self.resource_type:
            raise ValueError(f"Cannot add {other.resource_type.value} to {self.resource_type.value}")

        base = self.base if not self.is_zero else other.base
        with localcontext(resource_units.CONTEXT):
            amount = self.amount + other.amount
        return Quantity(amount=amount, resource_type=self.resource_type, base=base)

    def __add__(self, other: Any) -> Quantity:
        if not isinstance(other, Quantity):
            return NotImplemented
        return self.add(other)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Quantity):
            return self.resource_type == other.resource_type and self.amount == other.amount
        if isinstance(other, (int, float, Decimal)) and not isinstance(other, bool):
            return self.amount == Decimal(str(other))
        return NotImplemented

    def __lt__(self, other: Any) -> bool:
        if isinstance(other, Quantity):
            if other.resource_type != self.resource_type:
                raise TypeError(f"Cannot compare {self.resource_type.value} with {other.resource_type.value}")
            return self.amount < other.amount
        if isinstance(other, (int, float, Decimal)) and not isinstance(other, bool):
            return self.amount < Decimal(str(other))
        return NotImplemented

    def __hash__(self) -> int:
        return hash((self.resource_type, self.amount))

    def __float__(self) -> float:
        return float(self.amount)

    def __str__(self) -> str:
        return resource_units.format(self.amount, base=self.base)

    def __repr__(self) -> str:
        return f"Quantity({str(self)!r}, {self.resource_type.value})"

    @pd.model_serializer
    def serialize_as_string(self) -> str:
        return str(self)


def parse_cpu(value: QuantityValueRaw) -> Quantity:
    return Quantity.parse(value, ResourceType.CPU)


def parse_memory(value: QuantityValueRaw) -> Quantity:
    return Quantity.parse(value, ResourceType.Memory)


CpuQuantity = Annotated[Quantity, pd.BeforeValidator(parse_cpu)]
MemoryQuantity = Annotated[Quantity, pd.BeforeValidator(parse_memory)]
