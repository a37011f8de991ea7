# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Callback filter: wraps an arbitrary callable as a filter.

Callables attached to a chain are wrapped in ``CallbackFilter`` so every
chain entry runs through the same ``filter(value)`` contract.

Callback references may be given as strings, ``"package.module:function"``
or ``"package.module.Class.method"``, and are imported on demand.
"""

import importlib
from typing import Any, Callable, List, Mapping, Optional, Union

from pydantic import field_validator

from filterbox.core.exceptions import ConfigValidationError, SerializationError
from filterbox.core.filters.base import (
    AbstractFilter,
    Filter,
    FilterOptions,
    normalize_option_key,
)


def _import_attribute(module_path: str, attr_path: str) -> Any:
    target: Any = importlib.import_module(module_path)
    for part in attr_path.split("."):
        target = getattr(target, part)
    return target


def resolve_callable(reference: Union[str, Callable[..., Any]]) -> Callable[..., Any]:
    """
    Turn a callable or a string reference into a callable.

    Raises:
        ConfigValidationError: reference cannot be imported or is not callable
    """
    if callable(reference):
        return reference
    if not isinstance(reference, str) or not reference.strip():
        raise ConfigValidationError(f"Invalid callback reference: {reference!r}")

    reference = reference.strip().replace("::", ".")
    target: Any = None

    if ":" in reference:
        module_path, attr_path = reference.split(":", 1)
        try:
            target = _import_attribute(module_path, attr_path)
        except (ImportError, AttributeError) as e:
            raise ConfigValidationError(
                f"Cannot resolve callback reference: {reference}", cause=e
            )
    else:
        parts = reference.split(".")
        # Longest importable module prefix wins
        for split_at in range(len(parts) - 1, 0, -1):
            module_path = ".".join(parts[:split_at])
            attr_path = ".".join(parts[split_at:])
            try:
                target = _import_attribute(module_path, attr_path)
                break
            except (ImportError, AttributeError):
                continue
        if target is None:
            raise ConfigValidationError(f"Cannot resolve callback reference: {reference}")

    if not callable(target):
        raise ConfigValidationError(f"Callback reference is not callable: {reference}")
    return target


def callable_reference(func: Callable[..., Any]) -> str:
    """
    Build an importable ``module:qualname`` reference for ``func``.

    Raises:
        SerializationError: lambdas, closures and other callables that
            cannot be imported back
    """
    qualname = getattr(func, "__qualname__", None)
    module = getattr(func, "__module__", None)
    if module is None:
        # Methods of builtin types (str.upper) carry their owner instead
        module = getattr(getattr(func, "__objclass__", None), "__module__", None)

    if not module or not qualname or "<lambda>" in qualname or "<locals>" in qualname:
        raise SerializationError(
            f"Callable {func!r} cannot be referenced by import path", entry=func
        )

    reference = f"{module}:{qualname}"
    try:
        resolved = resolve_callable(reference)
    except ConfigValidationError as e:
        raise SerializationError(
            f"Callable {func!r} cannot be imported back from {reference}",
            entry=func,
            cause=e,
        )
    if resolved != func:
        raise SerializationError(
            f"Reference {reference} does not point back to {func!r}", entry=func
        )
    return reference


class CallbackOptions(FilterOptions):
    callback: Any
    params: List[Any] = []

    @field_validator("callback", mode="before")
    @classmethod
    def ensure_callable(cls, v):
        try:
            return resolve_callable(v)
        except ConfigValidationError as e:
            raise ValueError(e.message)


class CallbackFilter(AbstractFilter):
    """Runs ``callback(value, *params)``"""

    options_schema = CallbackOptions

    def __init__(self, callback_or_options: Any = None, params: Optional[List[Any]] = None):
        if isinstance(callback_or_options, Mapping) or callback_or_options is None:
            options = dict(callback_or_options or {})
        else:
            options = {"callback": callback_or_options}
        if params is not None:
            options["params"] = list(params)
        # No usable defaults exist, so the first bag must carry a callback
        Filter.__init__(self)
        self._options = self._validate_options(
            {normalize_option_key(key): value for key, value in options.items()}
        )

    @property
    def callback(self) -> Callable[..., Any]:
        return self._options["callback"]

    @property
    def params(self) -> List[Any]:
        return list(self._options.get("params", []))

    def filter(self, value: Any) -> Any:
        return self.callback(value, *self.params)

    def __repr__(self) -> str:
        return f"CallbackFilter({self.callback!r})"


__all__ = ["CallbackFilter", "resolve_callable", "callable_reference"]
