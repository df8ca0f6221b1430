"""Unit tests for Sybase → Oracle data type mapping extraction."""

from sqlshift.core.conversion.type_mappings import extract_data_type_mappings


def _by_type(mappings):
    return {m.sybase_type: m for m in mappings}


class TestExtractDataTypeMappings:

    def test_simple_and_parameterized_types(self):
        text = "DECLARE @id int, @name varchar(50), @price decimal(10, 2)"
        found = _by_type(extract_data_type_mappings(text))

        assert found["int"].oracle_type == "NUMBER(10)"
        assert found["varchar(50)"].oracle_type == "VARCHAR2(50)"
        assert found["decimal(10, 2)"].oracle_type == "NUMBER(10,2)"

    def test_original_spelling_kept(self):
        found = _by_type(extract_data_type_mappings("CREATE TABLE t (d DATETIME)"))
        assert found["DATETIME"].oracle_type == "TIMESTAMP"

    def test_duplicates_collapsed_case_insensitively(self):
        mappings = extract_data_type_mappings("a INT, b int, c Int")
        assert len(mappings) == 1

    def test_distinct_parameters_reported_separately(self):
        mappings = extract_data_type_mappings("a varchar(10), b varchar(20)")
        assert [m.oracle_type for m in mappings] == ["VARCHAR2(10)", "VARCHAR2(20)"]

    def test_word_boundaries(self):
        types = {m.sybase_type.lower() for m in extract_data_type_mappings(
            "a bigint, b datetime, c nvarchar(5)"
        )}
        assert types == {"bigint", "datetime", "nvarchar(5)"}

    def test_no_types(self):
        assert extract_data_type_mappings("SELECT 1") == []
        assert extract_data_type_mappings("") == []

    def test_description_populated(self):
        mapping = extract_data_type_mappings("x bit")[0]
        assert mapping.oracle_type == "NUMBER(1)"
        assert mapping.description
