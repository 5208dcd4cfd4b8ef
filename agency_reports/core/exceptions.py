# agency_reports/core/exceptions.py
"""Error taxonomy for report compilation and execution."""


class ReportError(Exception):
    """Base class for all reporting errors."""

    pass


# ===== CONFIGURATION ERRORS =====


class ConfigurationError(ReportError):
    """The report configuration is malformed or missing required fields."""

    pass


class UnsupportedFormat(ConfigurationError):
    """The requested output format has no renderer."""

    pass


# ===== VALIDATION ERRORS =====
# Always raised before any database interaction


class ValidationError(ReportError):
    """A structural value in the report configuration failed validation."""

    pass


class InvalidIdentifier(ValidationError):
    pass


class InvalidAggregate(ValidationError):
    pass


class InvalidJoinCondition(ValidationError):
    pass


class InvalidOperator(ValidationError):
    pass


class InvalidLimit(ValidationError):
    pass


class InvalidTenant(ValidationError):
    """The tenant identifier is not a usable database name."""

    pass


# ===== RUNTIME ERRORS =====


class ExecutionError(ReportError):
    """The tenant database rejected or failed the query.

    The message is the store's message, passed through verbatim.
    """

    pass


class ConnectionUnavailable(ReportError):
    """No connection could be acquired for the tenant."""

    pass
