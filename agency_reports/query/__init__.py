"""
Query module for the custom report builder.

This module compiles untrusted report configurations into parameterized SQL:
- Identifiers are validated against a strict grammar before being quoted
- Join conditions are parsed and re-quoted, never embedded verbatim
- Literal values are always bound as positional parameters

Main Components:
- ReportQueryBuilder: Compiles a ReportConfig into a CompiledQuery
- identifiers / joins: Validation and quoting helpers
- Schemas: Report configuration models and compiled query types
"""

from .builder import ReportQueryBuilder, MAX_LIMIT
from .identifiers import (
    quote_identifier,
    validate_identifier,
    validate_database_name,
)
from .joins import validate_join_condition
from .schemas import (
    # Report configuration
    ReportConfig,
    ColumnRef,
    JoinSpec,
    FilterSpec,
    OrderBySpec,
    # Compiled output
    CompiledQuery,
    QualifiedColumn,
    JoinCondition,
    # Enums
    AggregateFunction,
    JoinType,
    FilterOperator,
    SortDirection,
)

__all__ = [
    # Main classes
    "ReportQueryBuilder",
    "MAX_LIMIT",
    # Validation helpers
    "quote_identifier",
    "validate_identifier",
    "validate_database_name",
    "validate_join_condition",
    # Configuration types
    "ReportConfig",
    "ColumnRef",
    "JoinSpec",
    "FilterSpec",
    "OrderBySpec",
    # Output types
    "CompiledQuery",
    "QualifiedColumn",
    "JoinCondition",
    # Enums
    "AggregateFunction",
    "JoinType",
    "FilterOperator",
    "SortDirection",
]
