from resourcekit.models.base import Resource


class AddressResource(Resource):
    path = "addresses"
    casts = {
        "street": "string",
        "city": "string",
        "zip": "string",
    }


class UserResource(Resource):
    """Account returned by AUTH.URL_USER."""
    path = "users"
    casts = {
        "id": "integer",
        "name": "string",
        "email": "string",
        "active": "boolean",
        "balance": "decimal",
        "address": AddressResource,
        "preferences": "raw",
    }
