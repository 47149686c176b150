from resourcekit.models.base import Resource
from resourcekit.models.casts import Cast, Nested, Primitive, Raw, cast_value, to_cast
from resourcekit.models.status import OperationState, Status
from resourcekit.models.users import AddressResource, UserResource

__all__ = (
    "Resource",
    "Cast",
    "Primitive",
    "Nested",
    "Raw",
    "cast_value",
    "to_cast",
    "OperationState",
    "Status",
    "UserResource",
    "AddressResource",
)
