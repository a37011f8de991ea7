# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Filter Chain

An ordered pipeline of filters. Each entry has an integer priority; a
value runs through the entries highest priority first, and entries with
equal priority run in the order they were attached.

    chain = FilterChain()
    chain.attach(str.strip, priority=2000)
    chain.attach_by_name("strip_tags", {"allowTags": "b"})
    chain.filter("  <b>x</b><i>y</i> ")   # -> "<b>x</b>y"

Chains can be built from a configuration structure (see
``filterbox.core.config.ChainConfig``), merged, cloned and persisted:

- ``to_bytes`` / ``from_bytes``: pickle snapshot of the entries
- ``to_dict`` / ``from_dict``: portable form, filters by class path and
  options, callables by import reference
- ``to_yaml`` / ``from_yaml``: the portable form as YAML

Mutation is guarded by a re-entrant lock. ``filter()`` works on a snapshot
taken under the lock, so a concurrent attach or detach never affects a run
already in progress.
"""

import copy
import logging
import pickle
import threading
from typing import Annotated, Any, Dict, Iterator, List, Literal, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from filterbox.core.config import CallbackSpec, get_config, parse_chain_config
from filterbox.core.exceptions import (
    FilterBoxError,
    FilterNotFoundError,
    InvalidFilterError,
    SerializationError,
)
from filterbox.core.filters.base import Filter
from filterbox.core.filters.callback import (
    CallbackFilter,
    callable_reference,
    resolve_callable,
)
from filterbox.core.priority_queue import EXTRACT_BOTH, PriorityQueue
from filterbox.core.registry import FilterResolver, get_registry

logger = logging.getLogger("filterbox.chain")

PERSISTED_VERSION = 1


# ============================================================================
# Portable Form
# ============================================================================


class PersistedFilter(BaseModel):
    type: Literal["filter"]
    name: str
    options: Dict[str, Any] = Field(default_factory=dict)
    priority: int


class PersistedCallback(BaseModel):
    type: Literal["callback"]
    callback: str
    params: List[Any] = Field(default_factory=list)
    priority: int


class PersistedChain(BaseModel):
    version: Literal[1] = PERSISTED_VERSION
    entries: List[
        Annotated[Union[PersistedFilter, PersistedCallback], Field(discriminator="type")]
    ] = Field(default_factory=list)


def _class_path(entry: Filter) -> str:
    cls = type(entry)
    if "." in cls.__qualname__ or cls.__module__ in (None, "__main__"):
        raise SerializationError(
            f"Filter class {cls.__qualname__} cannot be referenced by import path",
            entry=entry,
        )
    return f"{cls.__module__}.{cls.__qualname__}"


# ============================================================================
# Filter Chain
# ============================================================================


class FilterChain:
    """
    Priority-ordered pipeline of filters and callables.

    Args:
        options: Chain configuration to attach right away
        resolver: Name resolver for ``attach_by_name``; defaults to the
            process-wide registry
        strict: Reject unknown configuration keys (defaults to the
            ``chain.strict_config`` setting)
        default_priority: Priority for entries attached without one
            (defaults to the ``chain.default_priority`` setting)
    """

    def __init__(
        self,
        options: Any = None,
        *,
        resolver: Optional[FilterResolver] = None,
        strict: Optional[bool] = None,
        default_priority: Optional[int] = None,
    ):
        self._lock = threading.RLock()
        self._queue = PriorityQueue()
        self._resolver = resolver

        if strict is None or default_priority is None:
            settings = get_config().chain
            strict = settings.strict_config if strict is None else strict
            if default_priority is None:
                default_priority = settings.default_priority
        self.strict = strict
        self.default_priority = default_priority

        if options is not None:
            self.set_options(options)

    # =========================================================================
    # Resolver
    # =========================================================================

    def get_resolver(self) -> FilterResolver:
        """Resolver used by ``attach_by_name`` (created on first use)"""
        if self._resolver is None:
            self._resolver = get_registry()
        return self._resolver

    def set_resolver(self, resolver: FilterResolver) -> "FilterChain":
        if not callable(getattr(resolver, "resolve", None)):
            raise InvalidFilterError(
                f"Resolver must provide resolve(name, options), got {type(resolver).__name__}"
            )
        self._resolver = resolver
        return self

    # =========================================================================
    # Mutation
    # =========================================================================

    def _priority(self, priority: Optional[int]) -> int:
        if priority is None:
            return self.default_priority
        if isinstance(priority, bool) or not isinstance(priority, int):
            raise InvalidFilterError(f"Priority must be an integer, got {priority!r}")
        return priority

    def _as_filter(self, callback: Any) -> Filter:
        if isinstance(callback, Filter):
            return callback
        if callable(callback):
            return CallbackFilter(callback)
        raise InvalidFilterError(
            f"Expected a filter or a callable, got {type(callback).__name__}",
            details={"entry": repr(callback)},
        )

    def attach(self, callback: Any, priority: Optional[int] = None) -> "FilterChain":
        """
        Attach a filter or a callable.

        Callables are wrapped in ``CallbackFilter``.

        Raises:
            InvalidFilterError: ``callback`` is neither a filter nor callable
        """
        entry = self._as_filter(callback)
        priority = self._priority(priority)
        with self._lock:
            self._queue.insert(entry, priority)
        logger.debug(f"Attached {entry!r} at priority {priority}")
        return self

    def attach_by_name(
        self,
        name: str,
        options: Optional[Dict[str, Any]] = None,
        priority: Optional[int] = None,
    ) -> "FilterChain":
        """
        Resolve ``name`` to a new filter instance and attach it.

        Raises:
            ResolutionError: the resolver does not know ``name``
            ConfigValidationError: invalid ``options`` for the filter
        """
        priority = self._priority(priority)
        entry = self.get_resolver().resolve(name, options)
        return self.attach(entry, priority)

    def detach(self, entry: Any) -> "FilterChain":
        """
        Remove an attached filter, or the wrapper of an attached callable.

        Raises:
            FilterNotFoundError: ``entry`` is not in the chain
        """
        with self._lock:
            if self._queue.remove(entry):
                logger.debug(f"Detached {entry!r}")
                return self
            for item in self._queue.to_list():
                if isinstance(item, CallbackFilter) and item.callback == entry:
                    self._queue.remove(item)
                    logger.debug(f"Detached callback {entry!r}")
                    return self
        raise FilterNotFoundError(
            f"Filter not found in chain: {entry!r}", details={"entry": repr(entry)}
        )

    def merge(self, other: "FilterChain") -> "FilterChain":
        """Append every entry of ``other``, keeping its priorities"""
        if not isinstance(other, FilterChain):
            raise InvalidFilterError(
                f"Can only merge a FilterChain, got {type(other).__name__}"
            )
        entries = other.get_entries()
        with self._lock:
            for entry, priority in entries:
                self._queue.insert(entry, priority)
        logger.debug(f"Merged {len(entries)} entries")
        return self

    def clear(self) -> "FilterChain":
        with self._lock:
            self._queue.clear()
        return self

    def set_options(self, options: Any) -> "FilterChain":
        """
        Attach every entry of a chain configuration.

        The whole structure is validated and every filter resolved before
        the first entry is attached; on error the chain is left unchanged.

        Args:
            options: Mapping or iterable of ``(key, value)`` pairs with
                ``callbacks`` and ``filters`` sections, attached in the
                order they are declared

        Raises:
            ConfigError: malformed structure
            ConfigValidationError: invalid entries or options
            ResolutionError: unknown filter name
        """
        config = parse_chain_config(options, strict=self.strict)

        entries: List[Tuple[Filter, int]] = []
        for spec in config.entries():
            if isinstance(spec, CallbackSpec):
                entry = CallbackFilter(spec.callback, spec.params)
            else:
                entry = self.get_resolver().resolve(spec.name, spec.options)
            entries.append((entry, self._priority(spec.priority)))

        with self._lock:
            for entry, priority in entries:
                self._queue.insert(entry, priority)
        logger.debug(f"Configured chain with {len(entries)} entries")
        return self

    # =========================================================================
    # Execution
    # =========================================================================

    def filter(self, value: Any) -> Any:
        """
        Run ``value`` through every entry in order.

        Returns ``value`` unchanged for an empty chain. Exceptions raised by
        an entry propagate and stop the run.
        """
        with self._lock:
            entries = self._queue.to_list()
        for entry in entries:
            value = entry(value)
        return value

    def __call__(self, value: Any) -> Any:
        return self.filter(value)

    # =========================================================================
    # Inspection
    # =========================================================================

    def count(self) -> int:
        with self._lock:
            return self._queue.count()

    def __len__(self) -> int:
        return self.count()

    def get_filters(self) -> List[Filter]:
        """Entries in execution order"""
        with self._lock:
            return self._queue.to_list()

    def get_entries(self) -> List[Tuple[Filter, int]]:
        """``(filter, priority)`` pairs in execution order"""
        with self._lock:
            return self._queue.to_list(EXTRACT_BOTH)

    def __iter__(self) -> Iterator[Filter]:
        return iter(self.get_filters())

    def __repr__(self) -> str:
        return f"FilterChain(count={self.count()})"

    # =========================================================================
    # Copying
    # =========================================================================

    def clone(self, deep: bool = False) -> "FilterChain":
        """
        Copy with its own queue.

        Filter instances are shared unless ``deep`` is true.
        """
        clone = self.__class__(
            resolver=self._resolver,
            strict=self.strict,
            default_priority=self.default_priority,
        )
        with self._lock:
            clone._queue = copy.deepcopy(self._queue) if deep else self._queue.copy()
        return clone

    def __copy__(self) -> "FilterChain":
        return self.clone()

    def __deepcopy__(self, memo) -> "FilterChain":
        clone = self.clone(deep=True)
        memo[id(self)] = clone
        return clone

    # =========================================================================
    # Persistence
    # =========================================================================

    def __getstate__(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "queue": self._queue.copy(),
                "strict": self.strict,
                "default_priority": self.default_priority,
            }

    def __setstate__(self, state: Dict[str, Any]):
        self._lock = threading.RLock()
        self._queue = state["queue"]
        self._resolver = None
        self.strict = state["strict"]
        self.default_priority = state["default_priority"]

    def to_bytes(self) -> bytes:
        """
        Pickle snapshot of the chain.

        The resolver is not included.

        Raises:
            SerializationError: an entry cannot be pickled (lambdas, closures)
        """
        try:
            return pickle.dumps(self)
        except (pickle.PicklingError, AttributeError, TypeError) as e:
            raise SerializationError(f"Chain cannot be serialized: {e}", cause=e)

    @classmethod
    def from_bytes(
        cls, data: bytes, resolver: Optional[FilterResolver] = None
    ) -> "FilterChain":
        """Rebuild a chain from ``to_bytes`` output"""
        try:
            chain = pickle.loads(data)
        except (pickle.UnpicklingError, EOFError, AttributeError, ImportError, TypeError, ValueError) as e:
            raise SerializationError(f"Invalid serialized chain: {e}", cause=e)
        if not isinstance(chain, cls):
            raise SerializationError(
                f"Serialized data holds {type(chain).__name__}, not {cls.__name__}"
            )
        if resolver is not None:
            chain.set_resolver(resolver)
        return chain

    def to_dict(self) -> Dict[str, Any]:
        """
        Portable form of the chain, entries in execution order.

        Raises:
            SerializationError: an entry has no import path (lambdas,
                closures, classes defined inside functions)
        """
        entries: List[Dict[str, Any]] = []
        for entry, priority in self.get_entries():
            if isinstance(entry, CallbackFilter):
                entries.append(
                    {
                        "type": "callback",
                        "callback": callable_reference(entry.callback),
                        "params": entry.params,
                        "priority": priority,
                    }
                )
            else:
                entries.append(
                    {
                        "type": "filter",
                        "name": _class_path(entry),
                        "options": entry.get_options(),
                        "priority": priority,
                    }
                )
        return {"version": PERSISTED_VERSION, "entries": entries}

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], resolver: Optional[FilterResolver] = None
    ) -> "FilterChain":
        """
        Rebuild a chain from ``to_dict`` output.

        Raises:
            SerializationError: malformed data or an entry that cannot be rebuilt
        """
        try:
            persisted = PersistedChain.model_validate(data)
        except ValidationError as e:
            raise SerializationError(f"Invalid persisted chain: {e}", cause=e)

        chain = cls(resolver=resolver)
        entries: List[Tuple[Filter, int]] = []
        try:
            for item in persisted.entries:
                if isinstance(item, PersistedCallback):
                    entry: Filter = CallbackFilter(resolve_callable(item.callback), item.params)
                else:
                    entry = chain.get_resolver().resolve(item.name, item.options)
                entries.append((entry, item.priority))
        except FilterBoxError as e:
            raise SerializationError(f"Cannot rebuild chain entry: {e.message}", cause=e)

        for entry, priority in entries:
            chain._queue.insert(entry, priority)
        return chain

    def to_yaml(self) -> str:
        """Portable form rendered as YAML"""
        try:
            return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)
        except yaml.YAMLError as e:
            raise SerializationError(f"Chain cannot be rendered as YAML: {e}", cause=e)

    @classmethod
    def from_yaml(
        cls, text: str, resolver: Optional[FilterResolver] = None
    ) -> "FilterChain":
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise SerializationError(f"Invalid YAML chain: {e}", cause=e)
        return cls.from_dict(data, resolver=resolver)


__all__ = [
    "FilterChain",
    "PersistedChain",
    "PERSISTED_VERSION",
]
