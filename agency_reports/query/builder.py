"""
ReportQueryBuilder: compiles a ReportConfig into parameterized SQL.

This is the single place where report query text is assembled. Every
identifier is validated and quoted, every literal value is bound as a
positional ``$n`` parameter, and nothing is returned until the whole
configuration has passed validation.
"""

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Union

import sqlparse
from pydantic import ValidationError as PydanticValidationError

from agency_reports.core.exceptions import (
    ConfigurationError,
    InvalidAggregate,
    InvalidLimit,
    InvalidOperator,
    ValidationError,
)
from .identifiers import quote_identifier, validate_identifier
from .joins import validate_join_condition
from .schemas import (
    AggregateFunction,
    ColumnRef,
    CompiledQuery,
    FilterOperator,
    FilterSpec,
    JoinSpec,
    JoinType,
    OrderBySpec,
    QualifiedColumn,
    ReportConfig,
    SortDirection,
)

logger = logging.getLogger(__name__)

MAX_LIMIT = 10000

_LIMIT_PATTERN = re.compile(r"\s*([0-9]+)\s*")

# STRING_AGG needs a delimiter on PostgreSQL; the argument is cast so
# non-text columns aggregate too
_AGGREGATE_TEMPLATES: Dict[AggregateFunction, str] = {
    AggregateFunction.STRING_AGG: "STRING_AGG(CAST({expr} AS TEXT), ', ')",
}


class ReportQueryBuilder:
    """
    Builds SELECT queries for custom reports.

    The builder holds no per-call state, so one instance can be shared
    across requests and tenants.
    """

    def __init__(self, strict_operators: bool = False, max_limit: int = MAX_LIMIT):
        self.strict_operators = strict_operators
        self.max_limit = max_limit

    def build(self, config: Union[ReportConfig, Mapping[str, Any]]) -> CompiledQuery:
        """
        Compile a report configuration.

        Raises:
            ConfigurationError: If the configuration is malformed or has no
                tables or columns
            ValidationError: If any identifier, aggregate, join condition,
                operator or limit is invalid
        """
        config = self._coerce_config(config)

        if not config.tables:
            raise ConfigurationError("At least one table is required")
        if not config.columns:
            raise ConfigurationError("At least one column is required")

        safe_tables = [quote_identifier(validate_identifier(t, "table")) for t in config.tables]
        select_list = ", ".join(self._build_column(col) for col in config.columns)

        clauses = [f"SELECT {select_list}", f"FROM {safe_tables[0]}"]

        if len(safe_tables) > 1:
            clauses.extend(self._build_join(join) for join in config.joins)

        parameters: List[Any] = []
        conditions = []
        for report_filter in config.filters:
            condition = self._build_filter(report_filter, parameters)
            if condition is not None:
                conditions.append(condition)
        if conditions:
            clauses.append("WHERE " + " AND ".join(conditions))

        if config.group_by:
            group_by = ", ".join(
                quote_identifier(validate_identifier(col, "group by column"))
                for col in config.group_by
            )
            clauses.append(f"GROUP BY {group_by}")

        if config.order_by:
            order_by = ", ".join(self._build_order_item(item) for item in config.order_by)
            clauses.append(f"ORDER BY {order_by}")

        limit = self._parse_limit(config.limit)
        if limit is not None:
            clauses.append(f"LIMIT {limit}")

        query_text = " ".join(clauses)
        self._assert_single_select(query_text)

        return CompiledQuery(query_text=query_text, parameters=tuple(parameters))

    # ===== CONFIGURATION =====

    def _coerce_config(self, config: Union[ReportConfig, Mapping[str, Any]]) -> ReportConfig:
        if isinstance(config, ReportConfig):
            return config
        if not isinstance(config, Mapping):
            raise ConfigurationError("Report configuration must be an object")
        try:
            return ReportConfig.model_validate(dict(config))
        except PydanticValidationError as e:
            raise ConfigurationError(f"Malformed report configuration: {e}") from e

    # ===== SELECT =====

    def _build_column(self, col: ColumnRef) -> str:
        source = QualifiedColumn(
            validate_identifier(col.table, "table"),
            validate_identifier(col.column, "column"),
        ).render()

        if col.aggregate:
            aggregate = self._normalize_aggregate(col.aggregate)
            alias = validate_identifier(col.alias, "alias") if col.alias else col.column
            template = _AGGREGATE_TEMPLATES.get(aggregate, aggregate.value + "({expr})")
            return f"{template.format(expr=source)} AS {quote_identifier(alias)}"

        if col.alias:
            return f"{source} AS {quote_identifier(validate_identifier(col.alias, 'alias'))}"
        return source

    def _normalize_aggregate(self, aggregate: str) -> AggregateFunction:
        try:
            return AggregateFunction(aggregate.strip().upper())
        except ValueError:
            raise InvalidAggregate(f"Invalid aggregate function: {aggregate}")

    # ===== JOIN =====

    def _build_join(self, join: JoinSpec) -> str:
        safe_table = quote_identifier(validate_identifier(join.table, "join table"))
        join_type = self._normalize_join_type(join.type)
        condition = validate_join_condition(join.condition)
        return f"{join_type.value} JOIN {safe_table} ON {condition.render()}"

    def _normalize_join_type(self, join_type: Optional[str]) -> JoinType:
        if not join_type:
            return JoinType.INNER
        try:
            return JoinType(join_type.strip().upper())
        except ValueError:
            return JoinType.INNER

    # ===== WHERE =====

    def _build_filter(self, report_filter: FilterSpec, parameters: List[Any]) -> Optional[str]:
        """
        Build one filter condition, appending its bound values to ``parameters``.

        Returns None when the filter contributes no restriction (an empty IN list).
        """
        target = QualifiedColumn(
            validate_identifier(report_filter.table, "table"),
            validate_identifier(report_filter.column, "column"),
        ).render()
        operator = self._normalize_operator(report_filter.operator)
        value = report_filter.value

        if operator == FilterOperator.IN:
            if not isinstance(value, (list, tuple)):
                raise ValidationError("IN operator requires an array value")
            if not value:
                logger.debug(f"Dropping empty IN filter on {target}")
                return None
            placeholders = []
            for item in value:
                parameters.append(item)
                placeholders.append(f"${len(parameters)}")
            return f"{target} IN ({', '.join(placeholders)})"

        if operator in (FilterOperator.IS, FilterOperator.IS_NOT):
            if not self._is_null_literal(value):
                raise ValidationError(f"{operator.value} operator can only be used with NULL")
            return f"{target} {operator.value} NULL"

        parameters.append(value)
        return f"{target} {operator.value} ${len(parameters)}"

    def _normalize_operator(self, operator: Optional[str]) -> FilterOperator:
        if operator is None:
            return FilterOperator.EQ
        normalized = " ".join(operator.split()).upper()
        try:
            return FilterOperator(normalized)
        except ValueError:
            if self.strict_operators:
                raise InvalidOperator(f"Invalid filter operator: {operator}")
            logger.warning(f"Unrecognized filter operator {operator!r}, using '='")
            return FilterOperator.EQ

    @staticmethod
    def _is_null_literal(value: Any) -> bool:
        return value is None or value == "NULL"

    # ===== ORDER BY / LIMIT =====

    def _build_order_item(self, item: Union[str, OrderBySpec]) -> str:
        if isinstance(item, str):
            return f"{quote_identifier(validate_identifier(item, 'order by column'))} ASC"

        safe_column = quote_identifier(validate_identifier(item.column, "order by column"))
        direction = SortDirection.ASC
        if isinstance(item.direction, str) and item.direction.upper() == SortDirection.DESC.value:
            direction = SortDirection.DESC
        return f"{safe_column} {direction.value}"

    def _parse_limit(self, limit: Any) -> Optional[int]:
        if limit is None:
            return None

        if isinstance(limit, bool):
            raise InvalidLimit("Limit must be a positive integer")
        if isinstance(limit, int):
            value = limit
        elif isinstance(limit, float) and limit.is_integer():
            # JSON clients may send 100.0; fractional limits are still rejected
            value = int(limit)
        elif isinstance(limit, str) and _LIMIT_PATTERN.fullmatch(limit):
            value = int(limit)
        else:
            raise InvalidLimit("Limit must be a positive integer")

        if value <= 0:
            raise InvalidLimit("Limit must be a positive integer")
        if value > self.max_limit:
            raise InvalidLimit(f"Limit cannot exceed {self.max_limit}")
        return value

    # ===== FINAL CHECK =====

    @staticmethod
    def _assert_single_select(query_text: str) -> None:
        statements = [stmt for stmt in sqlparse.parse(query_text) if str(stmt).strip()]
        if len(statements) != 1 or statements[0].get_type() != "SELECT":
            raise ValueError("Assembled report query is not a single SELECT statement")
