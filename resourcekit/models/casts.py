"""
Cast descriptors and the coercion applied to attribute values.

A cast is one of:
    Primitive  boolean | string | integer | decimal
    Nested     another Resource subclass, read back as a live child resource
    Raw        stored as given

Declarations on resources may use the short forms ("integer", AddressResource,
"raw") which `to_cast` turns into descriptors.
"""
from __future__ import annotations
import math
from typing import Annotated, Any, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from resourcekit.errors import InvalidCastError

RESOURCE_TAG = "_rk_is_resource"

PrimitiveType = Literal["boolean", "string", "integer", "decimal"]
PRIMITIVE_TYPES = ("boolean", "string", "integer", "decimal")


class Primitive(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["primitive"] = "primitive"
    type: PrimitiveType


class Nested(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)
    kind: Literal["nested"] = "nested"
    resource: type[Any]


class Raw(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Literal["raw"] = "raw"


Cast = Annotated[Union[Primitive, Nested, Raw], Field(discriminator="kind")]
CAST_ADAPTER: TypeAdapter[Cast] = TypeAdapter(Cast)


def is_resource(declaration: Any) -> bool:
    """
    :param declaration: object used in a cast declaration
    :return: whether it is a Resource subclass (checked by tag, not by import)
    """
    return isinstance(declaration, type) and getattr(declaration, RESOURCE_TAG, False) is True


def to_cast(path: str, declaration: Any) -> Cast:
    match declaration:
        case Primitive() | Nested() | Raw():
            return declaration
        case None | "raw":
            return Raw()
        case str() if declaration in PRIMITIVE_TYPES:
            return Primitive(type=declaration)
        case type() if is_resource(declaration):
            return Nested(resource=declaration)
        case {"kind": _}:
            try:
                cast = CAST_ADAPTER.validate_python(declaration)
            except ValidationError as exc:
                raise InvalidCastError(path, declaration) from exc
            if isinstance(cast, Nested) and not is_resource(cast.resource):
                raise InvalidCastError(path, declaration)
            return cast
        case _:
            raise InvalidCastError(path, declaration)


def to_integer(value: Any) -> int:
    if not value:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    text = str(value).strip()
    if "_" in text:
        return 0
    try:
        return int(text, 10)
    except (TypeError, ValueError):
        return 0


def to_decimal(value: Any) -> float:
    if not value:
        return 0.0
    if isinstance(value, str) and "_" in value:
        return 0.0
    try:
        result = float(value)
    except (TypeError, ValueError):
        return 0.0
    # nan and inf cannot go out as JSON
    return result if math.isfinite(result) else 0.0


def cast_value(api: Any, cast: Cast | None, value: Any = None) -> Any:
    """
    Coerce `value` according to `cast`.

    Depends on nothing but its arguments: `Resource.schema` calls it with
    value=None to get each type's zero value.
    Nested resources are built on the same `api`, so they share its config.
    """
    match cast:
        case None | Raw():
            return value
        case Nested(resource=resource):
            return resource(api, value or {})
        case Primitive(type="boolean"):
            return bool(value)
        case Primitive(type="string"):
            return str(value) if value else ""
        case Primitive(type="integer"):
            return to_integer(value)
        case Primitive(type="decimal"):
            return to_decimal(value)
    raise InvalidCastError("", cast)
