"""
Network Configuration Constants

This module contains all constants related to the REST API transport.
"""


class NetworkConfig:
    """Network configuration constants."""

    DEFAULT_BASE_URL = "http://localhost:3000"
    DEFAULT_API_PREFIX = "/api/admin"
    DEFAULT_TIMEOUT = 30.0  # seconds

    USER_AGENT = "foliosync/0.1.0"

    CONTENT_TYPE_JSON = "application/json"
    ACCEPT_JSON = "application/json"
    NO_CACHE = "no-cache"


class HTTPMethod:
    """HTTP verbs used by the coordinator."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class MutationVerb:
    """Mutation verbs and the HTTP method each one maps to."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    METHODS = {
        CREATE: HTTPMethod.POST,
        UPDATE: HTTPMethod.PUT,
        DELETE: HTTPMethod.DELETE,
    }
