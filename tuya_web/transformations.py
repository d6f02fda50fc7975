"""Numeric transformation pipelines between Tuya and accessory value spaces.

A pipeline is an ordered tuple of :class:`TransformationStep` objects folded
left to right over an input value. Pipelines are configured independently for
each direction, so a read pipeline and its write counterpart are not required
to be inverses of each other.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable, Mapping, Sequence
from enum import Enum
from functools import reduce
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    field_validator,
    model_validator,
)

from .exceptions import ConfigurationError

Number = int | float


class TransformationType(str, Enum):
    """Operations understood by a transformation step."""

    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    DIVIDE = "divide"
    PARSE_INT = "parseInt"
    FLOOR = "floor"
    ROUND = "round"

    @property
    def requires_operand(self) -> bool:
        """Return True for the arithmetic operations."""

        return self in _OPERAND_TYPES


_OPERAND_TYPES = frozenset(
    {
        TransformationType.ADD,
        TransformationType.SUBTRACT,
        TransformationType.MULTIPLY,
        TransformationType.DIVIDE,
    }
)
_TRUNCATE_ALIASES = frozenset({"truncate", "parseint", "parse_int"})
_LEADING_INTEGER = re.compile(r"\s*[+-]?\d+")


class TransformationStep(BaseModel):
    """A single ``{type, value}`` operation in a pipeline."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: TransformationType
    value: float | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalise_type(cls, value: Any) -> Any:
        """Accept ``truncate`` as a spelling of ``parseInt``."""

        if isinstance(value, str) and value.lower() in _TRUNCATE_ALIASES:
            return TransformationType.PARSE_INT
        return value

    @model_validator(mode="after")
    def _check_operand(self) -> TransformationStep:
        """Require an operand for arithmetic steps and reject it elsewhere."""

        if self.type.requires_operand and self.value is None:
            raise ValueError(f"'{self.type.value}' requires a numeric value")
        if not self.type.requires_operand and self.value is not None:
            raise ValueError(f"'{self.type.value}' does not take a value")
        return self


Pipeline = tuple[TransformationStep, ...]


def build_pipeline(
    steps: Iterable[TransformationStep | Mapping[str, Any]] | None,
) -> Pipeline:
    """Validate ``steps`` and return them as an immutable pipeline.

    Raises:
        ConfigurationError: when a step names an unknown operation or is
            missing its operand.
    """

    if steps is None:
        return ()
    pipeline: list[TransformationStep] = []
    for index, step in enumerate(steps):
        if isinstance(step, TransformationStep):
            pipeline.append(step)
            continue
        try:
            pipeline.append(TransformationStep.model_validate(step))
        except ValidationError as err:
            msg = f"Invalid transformation at position {index}: {step!r}"
            raise ConfigurationError(msg) from err
    return tuple(pipeline)


def _as_number(value: Any) -> Number:
    """Coerce raw API values, which may arrive as strings, to a number."""

    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int | float):
        return value
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return math.nan
    return float(value)


def _divide(value: Number, operand: float) -> Number:
    try:
        return value / operand
    except ZeroDivisionError:
        if value == 0 or math.isnan(value):
            return math.nan
        return math.copysign(math.inf, value) * math.copysign(1.0, operand)


def _truncate(value: Number) -> Number:
    if not math.isfinite(value):
        return value
    return math.trunc(value)


def _parse_int(value: Any) -> Number:
    """Truncate to an integer, reading strings by their leading digits."""

    if isinstance(value, str):
        match = _LEADING_INTEGER.match(value)
        return int(match.group()) if match else math.nan
    return _truncate(_as_number(value))


def _floor(value: Number) -> Number:
    if not math.isfinite(value):
        return value
    return math.floor(value)


def _round(value: Number) -> Number:
    # Halves round towards positive infinity.
    if not math.isfinite(value):
        return value
    return math.floor(value + 0.5)


_OPERATIONS: dict[TransformationType, Callable[[Number, float], Number]] = {
    TransformationType.ADD: lambda value, operand: value + operand,
    TransformationType.SUBTRACT: lambda value, operand: value - operand,
    TransformationType.MULTIPLY: lambda value, operand: value * operand,
    TransformationType.DIVIDE: _divide,
    TransformationType.FLOOR: lambda value, _: _floor(value),
    TransformationType.ROUND: lambda value, _: _round(value),
}


def _apply_step(value: Any, step: TransformationStep) -> Number:
    if step.type is TransformationType.PARSE_INT:
        return _parse_int(value)
    operation = _OPERATIONS[step.type]
    return operation(_as_number(value), step.value if step.value is not None else 0.0)


def apply_transformations(pipeline: Sequence[TransformationStep], value: Any) -> Number:
    """Fold ``pipeline`` over ``value`` and return the result.

    An empty pipeline returns the (numeric) input unchanged. A ``parseInt``
    step reads strings by their leading digits, so ``"12abc"`` becomes 12.
    Infinite and NaN intermediate results are forwarded rather than trapped.
    """

    if not pipeline:
        return _as_number(value)
    return reduce(_apply_step, pipeline, value)


TUYA_TO_PERCENT: Pipeline = build_pipeline(
    [
        {"type": "parseInt"},
        {"type": "divide", "value": 255},
        {"type": "multiply", "value": 100},
        {"type": "floor"},
    ]
)
"""Shipped read pipeline converting a 0-255 device value to 0-100."""

IDENTITY: Pipeline = ()
