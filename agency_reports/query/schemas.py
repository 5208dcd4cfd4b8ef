"""
Query building types for the report builder.

This module defines the report configuration accepted by the
ReportQueryBuilder and the value types it produces. The configuration models
only check shape; QualifiedColumn and JoinCondition are only created from
names that already passed identifier validation.
"""

from typing import Any, List, Optional, Tuple, Union
from dataclasses import dataclass
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class AggregateFunction(str, Enum):
    """Aggregate functions allowed in report columns."""

    COUNT = "COUNT"
    SUM = "SUM"
    AVG = "AVG"
    MIN = "MIN"
    MAX = "MAX"
    STRING_AGG = "STRING_AGG"


class JoinType(str, Enum):
    """Join types allowed between report tables."""

    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL = "FULL"
    CROSS = "CROSS"


class FilterOperator(str, Enum):
    """Comparison operators allowed in report filters."""

    EQ = "="
    NE = "!="
    NE_ALT = "<>"
    LT = "<"
    GT = ">"
    LTE = "<="
    GTE = ">="
    LIKE = "LIKE"
    ILIKE = "ILIKE"
    IN = "IN"
    IS = "IS"
    IS_NOT = "IS NOT"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class QualifiedColumn:
    """A validated table.column pair."""

    table: str
    column: str

    def render(self) -> str:
        from .identifiers import quote_identifier

        return f"{quote_identifier(self.table)}.{quote_identifier(self.column)}"


@dataclass(frozen=True)
class JoinCondition:
    """A sanitized two-sided equality between qualified columns."""

    left: QualifiedColumn
    right: QualifiedColumn

    def render(self) -> str:
        """Re-quote both sides; the caller's raw text is never reused."""
        return f"{self.left.render()} = {self.right.render()}"


@dataclass(frozen=True)
class CompiledQuery:
    """Result of compiling a report configuration.

    ``parameters`` is positionally aligned with the ``$1..$n`` placeholders
    in ``query_text``.
    """

    query_text: str
    parameters: Tuple[Any, ...] = ()

    @property
    def parameter_count(self) -> int:
        return len(self.parameters)

    def to_dict(self) -> dict:
        return {"query": self.query_text, "parameters": list(self.parameters)}


# ===== REPORT CONFIGURATION =====
# Shape only; identifier, operator and limit rules are enforced by the builder


class ColumnRef(BaseModel):
    """A selected column, optionally aggregated."""

    table: str
    column: str
    aggregate: Optional[str] = None
    alias: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class JoinSpec(BaseModel):
    table: str
    type: Optional[str] = None
    condition: str

    model_config = ConfigDict(extra="forbid")


class FilterSpec(BaseModel):
    """A single filter predicate; ``value`` is required but may be null."""

    table: str
    column: str
    operator: Optional[str] = None
    value: Any

    model_config = ConfigDict(extra="forbid")


class OrderBySpec(BaseModel):
    column: str
    direction: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class ReportConfig(BaseModel):
    """Caller-supplied description of an ad-hoc tabular report."""

    tables: List[str] = []
    columns: List[ColumnRef] = []
    joins: List[JoinSpec] = []
    filters: List[FilterSpec] = []
    group_by: List[str] = Field(default_factory=list, alias="groupBy")
    order_by: List[Union[str, OrderBySpec]] = Field(default_factory=list, alias="orderBy")
    limit: Optional[Any] = None

    model_config = ConfigDict(extra="forbid", populate_by_name=True)
