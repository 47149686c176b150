# flake8: noqa: F401
from .errors import ResourceKitError, OperationFailed, InvalidCastError
from .response import ApiResult, Response
from .http import Api
from .config import Config, Bootstrap
from .models import Resource, OperationState, Status, UserResource, AddressResource

__version__ = "0.1.0"

__all__ = (
    "__version__",
    # transport
    "Api",
    "ApiResult",
    "Response",
    # config
    "Config",
    "Bootstrap",
    # resources
    "Resource",
    "OperationState",
    "Status",
    "UserResource",
    "AddressResource",
    # errors
    "ResourceKitError",
    "OperationFailed",
    "InvalidCastError",
)
