"""Tests for vector literals and the Row model."""

import json

import pytest

from langchain_obvec_search import Row, format_vector, parse_vector


class TestVectorLiteral:

    def test_formats_as_bracketed_literal(self):
        assert format_vector([0.1, 0.2, 0.3]) == "[0.1,0.2,0.3]"

    def test_handles_integer_like_floats(self):
        assert format_vector([1.0, 2.0]) == "[1.0,2.0]"

    def test_coerces_ints_to_floats(self):
        assert format_vector([1, 2, 3]) == "[1.0,2.0,3.0]"

    @pytest.mark.parametrize(
        "values",
        [[0.1, 0.2, 0.3], [1.0, 2.0], [-1.5, 0.0, 3.25e-05], []],
    )
    def test_parse_inverts_format(self, values):
        assert parse_vector(format_vector(values)) == values

    def test_parse_tolerates_spaces(self):
        assert parse_vector(" [1.0, 2.5] ") == [1.0, 2.5]


class TestRow:

    def test_defaults(self):
        row = Row(content="Hello", embedding=[0.1])
        assert row.id is None
        assert row.namespace is None
        assert row.metadata == {}

    def test_serializes_embedding_and_metadata(self):
        row = Row(content="Hello", embedding=[0.1, 0.2], metadata={"page": 1})
        assert row.embedding_as_str() == "[0.1,0.2]"
        assert json.loads(row.metadata_as_json()) == {"page": 1}

    def test_validates_database_values(self):
        row = Row.model_validate({
            "id": 7,
            "content": "Hello",
            "embedding": "[0.1,0.2,0.3]",
            "namespace": None,
            "metadata": '{"source": "doc1"}',
        })
        assert row.embedding == [0.1, 0.2, 0.3]
        assert row.metadata == {"source": "doc1"}

    def test_null_metadata_becomes_empty(self):
        row = Row(content="Hello", metadata=None)
        assert row.metadata == {}

    def test_string_id_is_coerced(self):
        assert Row(id="10", content="Hello").id == 10
