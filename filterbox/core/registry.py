# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Filterbox Filter Registry

Maps filter names to new filter instances.

Lookup order for ``resolve(name)``:
    1. Registered names and aliases. Matching ignores case, ``_``, ``-``
       and spaces, so ``string_trim``, ``StringTrim`` and ``string-trim``
       are the same name.
    2. Fully qualified class paths (``package.module.ClassName``), which
       must point to a ``Filter`` subclass.

Built-in filters are registered lazily; their modules are imported the
first time one of their names is resolved.

Every call to ``resolve`` builds a new instance, so two chain entries
resolved from the same name never share state.
"""

import importlib
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Protocol, Union

from filterbox.core.exceptions import FilterBoxError, ResolutionError
from filterbox.core.filters.base import AbstractFilter, Filter

logger = logging.getLogger("filterbox.registry")

FilterFactory = Union[type, Callable[[Optional[Dict[str, Any]]], Filter]]

_IGNORED_NAME_CHARS = re.compile(r"[\s_\-]")


# =============================================================================
# Built-in Filters
# =============================================================================

BUILTIN_FILTERS = {
    "string_trim": "Strip whitespace or a character list from both ends",
    "string_to_lower": "Lowercase text (bytes decoded with 'encoding')",
    "string_to_upper": "Uppercase text (bytes decoded with 'encoding')",
    "strip_tags": "Remove markup tags, keeping allowed tags and attributes",
    "preg_replace": "Regular expression search and replace",
    "to_int": "Convert numeric strings and floats to integers",
    "callback": "Run a callable as a filter",
}


class FilterResolver(Protocol):
    """Anything that can turn a filter name into a configured instance"""

    def resolve(self, name: str, options: Optional[Mapping[str, Any]] = None) -> Filter:
        ...


def normalize_name(name: str) -> str:
    """``String_Trim`` / ``string-trim`` / ``stringtrim`` -> ``stringtrim``"""
    return _IGNORED_NAME_CHARS.sub("", name).lower()


class FilterRegistry:
    """
    Lazy-loading registry for filters.

    Names map to factories. A factory is either a ``Filter`` subclass or a
    callable taking the options mapping (or ``None``) and returning a
    ``Filter``.
    """

    def __init__(self, register_builtins: bool = True):
        self._loaders: Dict[str, Callable[[], FilterFactory]] = {}
        self._canonical: Dict[str, str] = {}
        self._aliases: Dict[str, List[str]] = {}
        if register_builtins:
            self._register_builtin_filters()

    def _register_builtin_filters(self):
        """Register the filters shipped with filterbox"""

        # Trim
        self.register_lazy(
            ["string_trim", "trim"],
            "filterbox.core.filters.string",
            "StringTrim",
        )

        # Case conversion
        self.register_lazy(
            ["string_to_lower", "to_lower", "lower"],
            "filterbox.core.filters.string",
            "StringToLower",
        )
        self.register_lazy(
            ["string_to_upper", "to_upper", "upper"],
            "filterbox.core.filters.string",
            "StringToUpper",
        )

        # Markup
        self.register_lazy(
            ["strip_tags"],
            "filterbox.core.filters.markup",
            "StripTags",
        )

        # Regex
        self.register_lazy(
            ["preg_replace", "regex_replace"],
            "filterbox.core.filters.string",
            "PregReplace",
        )

        # Conversion
        self.register_lazy(
            ["to_int", "int"],
            "filterbox.core.filters.string",
            "ToInt",
        )

        # Callables
        self.register_lazy(
            ["callback"],
            "filterbox.core.filters.callback",
            "CallbackFilter",
        )

    # =========================================================================
    # Registration
    # =========================================================================

    def _add(self, names: List[str], loader: Callable[[], FilterFactory]):
        if not names:
            raise ValueError("At least one filter name is required")
        canonical = names[0]
        for name in names:
            key = normalize_name(name)
            previous = self._canonical.get(key)
            if previous is not None and previous != canonical:
                logger.debug(f"Filter name '{name}' re-registered: {previous} -> {canonical}")
                self._aliases[previous] = [
                    alias for alias in self._aliases.get(previous, [])
                    if normalize_name(alias) != key
                ]
            self._loaders[key] = loader
            self._canonical[key] = canonical
        self._aliases[canonical] = list(names[1:])

    def register(self, name: str, factory: FilterFactory, aliases: Iterable[str] = ()):
        """Register a filter class or factory under ``name`` and ``aliases``"""
        if not callable(factory):
            raise TypeError(f"Filter factory for '{name}' must be callable")
        self._add([name, *aliases], lambda: factory)

    def register_lazy(self, names: List[str], module_path: str, class_name: str):
        """Register a filter class that is imported on first use."""
        self._add(list(names), lambda: self._import_filter(module_path, class_name))

    def unregister(self, name: str) -> bool:
        """Remove a filter and all its aliases"""
        canonical = self._canonical.get(normalize_name(name))
        if canonical is None:
            return False
        for key in [k for k, v in self._canonical.items() if v == canonical]:
            del self._canonical[key]
            del self._loaders[key]
        self._aliases.pop(canonical, None)
        return True

    def _import_filter(self, module_path: str, class_name: str) -> type:
        """Dynamically import a filter class."""
        try:
            module = importlib.import_module(module_path)
            return getattr(module, class_name)
        except ImportError as e:
            logger.error(f"Failed to import {module_path}.{class_name}: {e}")
            raise ResolutionError(
                f"Cannot import filter {module_path}.{class_name}",
                name=class_name,
                cause=e,
            )
        except AttributeError as e:
            logger.error(f"Class {class_name} not found in {module_path}: {e}")
            raise ResolutionError(
                f"Filter class {class_name} not found in {module_path}",
                name=class_name,
                cause=e,
            )

    # =========================================================================
    # Resolution
    # =========================================================================

    def _import_class_path(self, name: str) -> type:
        module_path, _, class_name = name.rpartition(".")
        try:
            target = getattr(importlib.import_module(module_path), class_name)
        except (ImportError, AttributeError, ValueError) as e:
            raise ResolutionError(f"Unknown filter: '{name}'", name=name, cause=e)

        if not isinstance(target, type) or not issubclass(target, Filter):
            raise ResolutionError(
                f"'{name}' is not a Filter subclass", name=name
            )
        return target

    def _factory_for(self, name: str) -> FilterFactory:
        loader = self._loaders.get(normalize_name(name))
        if loader is not None:
            return loader()
        if "." in name.strip("."):
            return self._import_class_path(name.strip())
        raise ResolutionError(
            f"Unknown filter: '{name}'. Available: {self.list_filters()}",
            name=name,
        )

    def resolve(self, name: str, options: Optional[Mapping[str, Any]] = None) -> Filter:
        """
        Build a new filter instance for ``name``.

        Args:
            name: Registered name, alias or ``module.ClassName`` path
            options: Options passed to the new instance

        Raises:
            ResolutionError: unknown name or factory that does not build a Filter
            ConfigValidationError: invalid options for the filter
        """
        if not isinstance(name, str) or not name.strip():
            raise ResolutionError(f"Invalid filter name: {name!r}", name=str(name))

        factory = self._factory_for(name)
        options = dict(options) if options else None

        try:
            if isinstance(factory, type) and issubclass(factory, AbstractFilter):
                instance = factory(options)
            elif isinstance(factory, type) and issubclass(factory, Filter):
                instance = factory()
                instance.set_options(options)
            else:
                instance = factory(options)
        except FilterBoxError:
            raise
        except TypeError as e:
            raise ResolutionError(
                f"Cannot instantiate filter '{name}': {e}", name=name, cause=e
            )

        if not isinstance(instance, Filter):
            raise ResolutionError(
                f"Factory for '{name}' returned {type(instance).__name__}, not a Filter",
                name=name,
            )

        logger.debug(f"Resolved filter '{name}' -> {type(instance).__name__}")
        return instance

    def has(self, name: str) -> bool:
        """Check if ``name`` resolves to a filter"""
        if normalize_name(name) in self._loaders:
            return True
        if "." in name.strip("."):
            try:
                self._import_class_path(name.strip())
                return True
            except ResolutionError:
                return False
        return False

    def list_filters(self) -> List[str]:
        """List canonical filter names."""
        return sorted(set(self._canonical.values()))

    def list_aliases(self) -> Dict[str, List[str]]:
        """Map each canonical name to its aliases."""
        return {name: list(self._aliases.get(name, [])) for name in self.list_filters()}

    def list_builtin_filters(self) -> Dict[str, str]:
        """List built-in filters with descriptions."""
        return BUILTIN_FILTERS.copy()

    def __contains__(self, name: str) -> bool:
        return self.has(name)


# Global registry instance
_registry: Optional[FilterRegistry] = None


def get_registry() -> FilterRegistry:
    """Get global registry instance (singleton)"""
    global _registry
    if _registry is None:
        _registry = FilterRegistry()
    return _registry


__all__ = [
    "FilterRegistry",
    "FilterResolver",
    "FilterFactory",
    "BUILTIN_FILTERS",
    "normalize_name",
    "get_registry",
]
