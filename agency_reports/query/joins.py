# agency_reports/query/joins.py
"""Join condition sanitizer.

Join predicates are structural and cannot be parameter-bound, so this is the
only defence against injection through ``JoinSpec.condition``. The raw text
is parsed into its four identifiers and never embedded again.
"""

import re
from typing import Any

from agency_reports.core.exceptions import InvalidIdentifier, InvalidJoinCondition
from .identifiers import validate_identifier
from .schemas import JoinCondition, QualifiedColumn

_NAME = r"([A-Za-z_][A-Za-z0-9_]*)"

JOIN_CONDITION_PATTERN = re.compile(
    rf"\s*{_NAME}\.{_NAME}\s*=\s*{_NAME}\.{_NAME}\s*"
)


def validate_join_condition(raw: Any) -> JoinCondition:
    """
    Parse ``table.column = table.column`` into a JoinCondition.

    Raises:
        InvalidJoinCondition: For any other shape, including other comparison
            operators, extra tokens, or a part that fails identifier validation
    """
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidJoinCondition("Join condition must be a non-empty string")

    match = JOIN_CONDITION_PATTERN.fullmatch(raw)
    if match is None:
        raise InvalidJoinCondition(
            "Invalid join condition format. Must be: table.column = table.column"
        )

    left_table, left_column, right_table, right_column = match.groups()
    try:
        left = QualifiedColumn(
            validate_identifier(left_table, "join table"),
            validate_identifier(left_column, "join column"),
        )
        right = QualifiedColumn(
            validate_identifier(right_table, "join table"),
            validate_identifier(right_column, "join column"),
        )
    except InvalidIdentifier as e:
        raise InvalidJoinCondition(f"Invalid join condition: {e}") from e

    return JoinCondition(left=left, right=right)
