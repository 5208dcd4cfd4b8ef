"""
Unit tests for identifier validation and quoting.
"""

import pytest

from agency_reports.core.exceptions import InvalidIdentifier, InvalidTenant, ValidationError
from agency_reports.query.identifiers import (
    MAX_IDENTIFIER_LENGTH,
    is_valid_identifier,
    quote_identifier,
    validate_database_name,
    validate_identifier,
)


class TestValidateIdentifier:
    """Test the identifier grammar"""

    @pytest.mark.parametrize("name", ["projects", "_private", "Client_2", "a", "x" * MAX_IDENTIFIER_LENGTH])
    def test_accepts_valid_names(self, name):
        assert validate_identifier(name) == name

    @pytest.mark.parametrize(
        "name",
        [
            "",
            "1projects",
            "projects.id",
            "id; DROP TABLE x",
            "name\n",
            " projects",
            "projects ",
            'pro"jects',
            "proj-ects",
            "café",
            "x" * (MAX_IDENTIFIER_LENGTH + 1),
        ],
    )
    def test_rejects_invalid_names(self, name):
        with pytest.raises(InvalidIdentifier):
            validate_identifier(name)

    @pytest.mark.parametrize("value", [None, 42, ["projects"], b"projects"])
    def test_rejects_non_strings(self, value):
        with pytest.raises(InvalidIdentifier):
            validate_identifier(value)

    def test_invalid_identifier_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            validate_identifier("bad name")

    def test_error_message_names_the_kind(self):
        with pytest.raises(InvalidIdentifier, match="Invalid column"):
            validate_identifier("bad name", "column")

    def test_is_valid_identifier_never_raises(self):
        assert is_valid_identifier("projects")
        assert not is_valid_identifier("projects.id")
        assert not is_valid_identifier(None)


class TestQuoteIdentifier:
    """Test identifier quoting"""

    def test_wraps_in_double_quotes(self):
        assert quote_identifier("projects") == '"projects"'

    def test_quoting_is_deterministic(self):
        assert quote_identifier("client_id") == quote_identifier("client_id")

    def test_distinct_names_quote_differently(self):
        assert quote_identifier("Projects") != quote_identifier("projects")

    def test_unvalidated_input_is_a_programming_error(self):
        with pytest.raises(ValueError):
            quote_identifier('x" OR "1"="1')

    def test_unvalidated_input_is_not_a_validation_error(self):
        with pytest.raises(Exception) as exc_info:
            quote_identifier("a.b")
        assert not isinstance(exc_info.value, ValidationError)


class TestValidateDatabaseName:
    """Test tenant database name validation"""

    def test_accepts_hyphenated_names(self):
        assert validate_database_name("agency-42_prod") == "agency-42_prod"

    def test_trims_whitespace(self):
        assert validate_database_name("  agency_one ") == "agency_one"

    @pytest.mark.parametrize("name", ["select", "USER", "Table"])
    def test_rejects_reserved_keywords(self, name):
        with pytest.raises(InvalidTenant, match="reserved"):
            validate_database_name(name)

    @pytest.mark.parametrize("name", ["", "   ", None, "agency;drop", "1agency", "a" * 64, "agency/one"])
    def test_rejects_invalid_names(self, name):
        with pytest.raises(InvalidTenant):
            validate_database_name(name)
