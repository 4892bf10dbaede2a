"""Tests for records.py module.

Tests change tracking, serialization and field exposure of BaseRecord
against a small test schema.
"""

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import BaseModel

from ci_models.errors import RecordValidationError
from ci_models.records import BaseRecord
from ci_models.schema import ModelSchema, register_schema


class SampleSchema(BaseModel):
    """Schema with three fields used only by these tests."""

    id: str
    foo: Any = None
    bar: Any = None


register_schema(
    ModelSchema(kind="sample", table_name="samples", model=SampleSchema, keys=("foo",))
)


@pytest.fixture
def datastore():
    """Create a datastore mock."""
    store = MagicMock()
    store.update = AsyncMock(return_value={"id": "as12345"})
    return store


@pytest.fixture
def scm_plugin():
    """Create a source-control plugin stand-in."""
    return MagicMock(name="scm_plugin")


@pytest.fixture
def config(datastore, scm_plugin):
    """Record config with capabilities and field values."""
    return {
        "datastore": datastore,
        "scm": scm_plugin,
        "id": "as12345",
        "foo": "foo",
        "bar": "bar",
    }


@pytest.fixture
def record(config):
    """Create a test record."""
    return BaseRecord("sample", config)


class TestConstruction:
    """Tests for BaseRecord construction."""

    def test_exposes_config_values(self, record, config):
        """Should expose each declared field's value."""
        for key in ("id", "foo", "bar"):
            assert getattr(record, key) == config[key]

    def test_datastore_is_private(self, record):
        """Should not expose the datastore as an attribute."""
        assert not hasattr(record, "datastore")

    def test_visible_attributes_are_declared_fields(self, record):
        """vars() should list exactly the declared fields in order."""
        assert list(vars(record)) == ["id", "foo", "bar"]

    def test_field_order_ignores_config_order(self, datastore):
        """Declared order should win over config key order."""
        record = BaseRecord(
            "sample", {"bar": 2, "foo": 1, "datastore": datastore, "id": "x"}
        )
        assert list(vars(record)) == ["id", "foo", "bar"]

    def test_ignores_undeclared_keys(self, config):
        """Undeclared config keys should not become attributes."""
        record = BaseRecord("sample", {**config, "extra": "nope"})
        assert "extra" not in vars(record)
        assert not hasattr(record, "extra")

    def test_missing_optional_fields_default(self, datastore):
        """Missing optional fields should take their schema default."""
        record = BaseRecord("sample", {"id": "x", "datastore": datastore})
        assert record.foo is None
        assert record.bar is None

    def test_missing_id_raises(self, datastore):
        """Should reject a config without an id."""
        with pytest.raises(RecordValidationError) as exc_info:
            BaseRecord("sample", {"foo": "foo", "datastore": datastore})
        assert exc_info.value.code == "validation"
        assert exc_info.value.details[0]["loc"] == ("id",)

    def test_accepts_scm_plugin_key(self, datastore, scm_plugin):
        """scm_plugin should be accepted as an alias for scm."""
        record = BaseRecord(
            "sample", {"id": "x", "datastore": datastore, "scm_plugin": scm_plugin}
        )
        assert record.scm is scm_plugin

    def test_rejects_undeclared_assignment(self, record):
        """Assigning an undeclared field should raise AttributeError."""
        with pytest.raises(AttributeError):
            record.extra = "nope"


class TestIsDirty:
    """Tests for BaseRecord.is_dirty()."""

    def test_clean_after_construction(self, record):
        """A new record should not be dirty."""
        assert record.is_dirty() is False
        assert record.is_dirty("foo") is False

    def test_dirty_after_assignment(self, record):
        """Assigning a new value should make the record dirty."""
        record.foo = "banana"
        assert record.foo == "banana"
        assert record.is_dirty() is True

    def test_dirty_key(self, record):
        """Only the assigned key should be dirty."""
        record.foo = "banana"
        assert record.is_dirty("foo") is True
        assert record.is_dirty("bar") is False

    def test_same_value_is_not_dirty(self, record):
        """Assigning the persisted value should not make the record dirty."""
        record.foo = "foo"
        assert record.is_dirty() is False

    def test_reverting_clears_dirty(self, record):
        """Setting a field back to its persisted value should clear it."""
        record.foo = "banana"
        record.foo = "foo"
        assert record.is_dirty("foo") is False


class TestUpdate:
    """Tests for BaseRecord.update()."""

    def test_noop_when_clean(self, record, datastore):
        """Should not call the datastore when nothing changed."""
        result = asyncio.run(record.update())

        assert result is record
        assert result.is_dirty() is False
        datastore.update.assert_not_called()

    def test_sends_only_changed_fields(self, record, datastore):
        """Should send exactly the changed fields keyed by id."""
        record.foo = "banana"

        result = asyncio.run(record.update())

        assert result is record
        assert result.is_dirty() is False
        datastore.update.assert_awaited_once_with(
            {
                "table": "samples",
                "params": {"id": "as12345", "data": {"foo": "banana"}},
            }
        )

    def test_second_update_is_noop(self, record, datastore):
        """A successful update should leave nothing to send."""
        record.bar = "baz"
        asyncio.run(record.update())
        asyncio.run(record.update())

        assert datastore.update.await_count == 1

    def test_propagates_datastore_error(self, record, datastore):
        """Datastore errors should propagate unchanged."""
        error = RuntimeError("iLessThanThreeMocha")
        datastore.update.side_effect = error
        record.foo = "banana"

        with pytest.raises(RuntimeError) as exc_info:
            asyncio.run(record.update())

        assert exc_info.value is error
        assert record.is_dirty("foo") is True

    def test_persisted_value_becomes_baseline(self, record, datastore):
        """After update, reverting to the old value should be a change."""
        record.foo = "banana"
        asyncio.run(record.update())

        record.foo = "foo"

        assert record.is_dirty("foo") is True


class TestSerialization:
    """Tests for to_json() and str()."""

    def test_to_json(self, record):
        """Should return the declared fields and values."""
        assert record.to_json() == {"id": "as12345", "foo": "foo", "bar": "bar"}

    def test_to_json_reflects_changes(self, record):
        """Should return current, not persisted, values."""
        record.bar = "baz"
        assert record.to_json()["bar"] == "baz"

    def test_str(self, record):
        """Should give the compact JSON form."""
        assert str(record) == '{"id":"as12345","foo":"foo","bar":"bar"}'

    def test_rehydrates(self, record, datastore):
        """A record built from to_json() should equal the original."""
        copy = BaseRecord("sample", {**record.to_json(), "datastore": datastore})
        assert copy == record
        assert json.loads(str(copy)) == record.to_json()

    def test_str_excludes_capabilities(self, record):
        """Capabilities should never be serialized."""
        assert "datastore" not in str(record)
        assert "scm" not in str(record)


class TestScm:
    """Tests for the scm accessor."""

    def test_scm_getter(self, record, scm_plugin):
        """Should return the injected scm plugin."""
        assert record.scm is scm_plugin

    def test_scm_is_read_only(self, record):
        """scm should not be assignable."""
        with pytest.raises(AttributeError):
            record.scm = "other"
