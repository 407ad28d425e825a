"""Exception hierarchy for sqlbridge.

All exceptions carry an exit_code for CLI return value mapping and a
user_message that is safe to show in a UI. Engine text is only surfaced
for query errors; connection and validation failures get generic text.
"""

from sqlbridge.core.exit_codes import ExitCode


class SqlBridgeError(Exception):
    """Base exception for all sqlbridge errors."""

    exit_code: int = ExitCode.GENERAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return self.message


class MalformedInputError(SqlBridgeError):
    """Invalid caller input: bad connection string, unknown operator, bad paging."""

    exit_code: int = ExitCode.INPUT_ERROR


class MalformedConnectionStringError(MalformedInputError):
    """Connection string is not a parseable URL."""


class UnknownOperatorError(MalformedInputError):
    """WHERE filter operator is not part of the operator vocabulary."""

    def __init__(self, operator: str) -> None:
        self.operator = operator
        super().__init__(f"Unknown filter operator: {operator!r}")


class ConnectionError(SqlBridgeError):
    """Connection failures, authentication failures, unreachable host."""

    exit_code: int = ExitCode.NETWORK_ERROR

    @property
    def user_message(self) -> str:
        return "Could not reach the database. Check your connection settings."


class TimeoutError(ConnectionError):
    """Query timeout, connection timeout."""

    exit_code: int = ExitCode.TIMEOUT

    @property
    def user_message(self) -> str:
        return "The query took too long and was stopped."


class QueryExecutionError(SqlBridgeError):
    """The engine rejected the statement (syntax, permissions, constraints)."""

    exit_code: int = ExitCode.QUERY_ERROR

    def __init__(self, message: str, engine_message: str | None = None) -> None:
        self.engine_message = engine_message or message
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return self.engine_message


class QueryCancelledError(SqlBridgeError):
    """The caller cancelled an in-flight query."""

    exit_code: int = ExitCode.CANCELLED

    @property
    def user_message(self) -> str:
        return "The query was cancelled."


class ValidationError(SqlBridgeError):
    """Result rows did not match the expected shape."""

    exit_code: int = ExitCode.VALIDATION_ERROR

    @property
    def user_message(self) -> str:
        return "Failed to read database metadata."


class UnsupportedEngineError(SqlBridgeError):
    """No statement or dialect exists for the requested engine."""

    exit_code: int = ExitCode.UNSUPPORTED_ENGINE

    @property
    def user_message(self) -> str:
        return "This operation is not supported for this database."


class ConfigError(SqlBridgeError):
    """Malformed config, missing profile."""

    exit_code: int = ExitCode.CONFIG_ERROR
