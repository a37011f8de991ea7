# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""Tests for the filterbox exception hierarchy"""

import pytest

from filterbox.core.exceptions import (
    ConfigError,
    ConfigFileError,
    ConfigValidationError,
    FilterBoxError,
    FilterNotFoundError,
    InvalidFilterError,
    ResolutionError,
    SerializationError,
)


@pytest.mark.parametrize(
    "error_class",
    [
        ConfigError,
        ConfigValidationError,
        ConfigFileError,
        ResolutionError,
        FilterNotFoundError,
        InvalidFilterError,
        SerializationError,
    ],
)
def test_hierarchy(error_class):
    assert issubclass(error_class, FilterBoxError)


def test_config_errors_share_a_base():
    assert issubclass(ConfigValidationError, ConfigError)
    assert issubclass(ConfigFileError, ConfigError)


def test_str_includes_details_and_cause():
    error = FilterBoxError("boom", details={"key": "value"}, cause=ValueError("inner"))
    text = str(error)
    assert "boom" in text
    assert "key" in text
    assert "inner" in text


def test_to_dict():
    error = ResolutionError("Unknown filter: 'x'", name="x", cause=KeyError("x"))
    data = error.to_dict()
    assert data["type"] == "ResolutionError"
    assert data["name"] == "x"
    assert data["cause"]["type"] == "KeyError"


def test_validation_error_carries_errors():
    error = ConfigValidationError("bad", errors=[{"loc": ["filters", 0], "msg": "missing"}])
    assert error.to_dict()["errors"][0]["msg"] == "missing"
    assert ConfigValidationError("bad").errors == []


def test_file_and_serialization_errors():
    assert ConfigFileError("missing", path="/tmp/x.yaml").to_dict()["path"] == "/tmp/x.yaml"
    assert SerializationError("nope", entry=len).to_dict()["entry"] == repr(len)
