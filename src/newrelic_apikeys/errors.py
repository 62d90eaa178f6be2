"""Error taxonomy for the API keys CLI.

Every failure is terminal for the invocation: the CLI layer catches
ApiKeysError, prints the message and exits non-zero.
"""


class ApiKeysError(Exception):
    """Base class for all errors raised by this package."""

    pass


class ConfigError(ApiKeysError):
    """Raised when the invocation cannot be configured."""

    pass


class MissingCredentialError(ConfigError):
    """Raised when no API key was given by flag or environment."""

    def __init__(self, env_var: str = "NEW_RELIC_API_KEY"):
        self.env_var = env_var
        super().__init__(f"No API key provided. Pass --api-key or set {env_var}.")


class ValidationError(ApiKeysError):
    """Raised when local input is malformed or incomplete.

    Always raised before any network call.
    """

    def __init__(self, message: str, field_errors: dict[str, str] | None = None):
        self.field_errors = field_errors or {}
        super().__init__(message)

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        """Build from a pydantic.ValidationError, keeping per-field messages."""
        field_errors: dict[str, str] = {}
        for err in exc.errors():
            loc = ".".join(str(x) for x in err["loc"]) or "input"
            field_errors[loc] = err["msg"]
        details = "; ".join(f"{loc}: {msg}" for loc, msg in field_errors.items())
        return cls(f"Invalid input: {details}", field_errors)


class TransportError(ApiKeysError):
    """Raised on network failures and non-2xx HTTP statuses."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        self.status_code = status_code
        self.body = body
        super().__init__(message)

    @classmethod
    def from_status(cls, status_code: int, body: str) -> "TransportError":
        return cls(f"HTTP {status_code} from NerdGraph: {body}", status_code, body)


class ApiError(ApiKeysError):
    """Raised when NerdGraph answers but the answer is not a usable result."""

    pass


class MalformedResponseError(ApiError):
    """Response body is not valid JSON."""

    pass


class GraphQLErrors(ApiError):
    """NerdGraph returned one or more GraphQL errors."""

    def __init__(self, messages: list[str]):
        self.messages = messages
        super().__init__("GraphQL errors: " + ", ".join(messages))


class UnexpectedShapeError(ApiError):
    """JSON is valid but lacks the fields expected for the command."""

    pass
