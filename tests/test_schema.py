"""Tests for schema.py module."""

import hashlib

import pytest

from ci_models.errors import RecordValidationError, UnknownModelError
from ci_models.schema import generate_id, get_schema


class TestGetSchema:
    """Tests for the schema registry."""

    def test_build_fields_in_order(self) -> None:
        """Build fields should be declared in a stable order."""
        schema = get_schema("build")
        assert schema.table_name == "builds"
        assert schema.all_keys == (
            "id",
            "job_id",
            "number",
            "create_time",
            "cause",
            "sha",
            "container",
            "status",
            "steps",
        )

    def test_required_keys(self) -> None:
        """Required keys should be the fields without defaults."""
        assert get_schema("job").required_keys == ("id", "pipeline_id", "name")
        assert get_schema("user").required_keys == ("id", "username")

    @pytest.mark.parametrize(
        ("kind", "table"),
        [
            ("pipeline", "pipelines"),
            ("job", "jobs"),
            ("user", "users"),
            ("build", "builds"),
        ],
    )
    def test_tables(self, kind: str, table: str) -> None:
        """Each kind should map to its table."""
        assert get_schema(kind).table_name == table

    def test_unknown_kind(self) -> None:
        """Unknown kinds should raise UnknownModelError."""
        with pytest.raises(UnknownModelError) as exc_info:
            get_schema("banana")
        assert exc_info.value.code == "unknown_model"


class TestGenerateId:
    """Tests for generate_id()."""

    def test_sha1_of_unique_keys(self) -> None:
        """Id should be the SHA-1 of the unique-key values in key order."""
        schema = get_schema("job")
        expected = hashlib.sha1(b"pipe123main").hexdigest()
        values = {"pipeline_id": "pipe123", "name": "main"}
        assert generate_id(schema, values) == expected

    def test_stable(self) -> None:
        """The same keys should always produce the same id."""
        schema = get_schema("user")
        first = generate_id(schema, {"username": "batman"})
        second = generate_id(schema, {"username": "batman", "token": "ignored"})
        assert first == second
        assert len(first) == 40

    def test_missing_key(self) -> None:
        """A missing unique key should raise RecordValidationError."""
        with pytest.raises(RecordValidationError, match="job_id"):
            generate_id(get_schema("build"), {"number": 1})
