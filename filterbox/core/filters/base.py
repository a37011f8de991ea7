# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Filterbox Base Filter Architecture

Every filter exposes one operation, ``filter(value)``, and is callable
directly. Filters return values they do not understand unchanged.

``AbstractFilter`` adds an options bag validated by a Pydantic model
declared per filter class. Option keys may be given in snake_case or
camelCase (``allow_tags`` / ``allowTags``).
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Mapping, Optional, Type

from pydantic import BaseModel, ConfigDict, ValidationError

from filterbox.core.exceptions import ConfigValidationError

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class FilterOptions(BaseModel):
    """Base model for filter options; unknown keys are rejected"""
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)


def normalize_option_key(key: str) -> str:
    """Convert ``allowTags`` / ``allow-tags`` to ``allow_tags``"""
    return _CAMEL_BOUNDARY.sub("_", str(key)).replace("-", "_").lower()


class Filter(ABC):
    """
    Base class for all filters.

    Subclasses implement ``filter()``; the chain invokes instances
    through ``__call__``.
    """

    def __init__(self, filter_name: Optional[str] = None):
        self.filter_name = filter_name or self.__class__.__name__
        self.logger = logging.getLogger(f"filterbox.filters.{self.filter_name}")

    @abstractmethod
    def filter(self, value: Any) -> Any:
        """
        Return the filtered ``value``.

        Values of unsupported types are returned unchanged.
        """

    def __call__(self, value: Any) -> Any:
        return self.filter(value)

    def get_options(self) -> Dict[str, Any]:
        """Options needed to rebuild an equivalent filter"""
        return {}

    def set_options(self, options: Optional[Mapping[str, Any]]) -> "Filter":
        if options:
            raise ConfigValidationError(
                f"{self.filter_name} does not accept options",
                details={"options": list(options)},
            )
        return self

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.get_options()!r})"


class AbstractFilter(Filter):
    """
    Filter with a validated options bag.

    Subclasses set ``options_schema`` to a Pydantic model whose fields are
    the accepted options and their defaults.
    """

    options_schema: ClassVar[Optional[Type[BaseModel]]] = None

    def __init__(self, options: Optional[Mapping[str, Any]] = None):
        super().__init__()
        self._options: Dict[str, Any] = self._validate_options({})
        if options is not None:
            self.set_options(options)

    def _validate_options(self, options: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate options against ``options_schema``

        Raises:
            ConfigValidationError: unknown option or invalid value
        """
        if self.options_schema is None:
            if options:
                raise ConfigValidationError(
                    f"{self.filter_name} does not accept options",
                    details={"options": list(options)},
                )
            return {}

        try:
            model = self.options_schema(**options)
        except ValidationError as e:
            error_messages = []
            for error in e.errors():
                field = ".".join(str(loc) for loc in error["loc"])
                error_messages.append(f"{field}: {error['msg']}")
            raise ConfigValidationError(
                f"Invalid options for {self.filter_name}: {'; '.join(error_messages)}",
                errors=[
                    {"loc": list(error["loc"]), "msg": error["msg"]}
                    for error in e.errors()
                ],
                cause=e,
            )
        return model.model_dump()

    def set_options(self, options: Optional[Mapping[str, Any]]) -> "AbstractFilter":
        """Merge ``options`` into the current options"""
        if options is None:
            return self
        if not isinstance(options, Mapping):
            raise ConfigValidationError(
                f"Options for {self.filter_name} must be a mapping, got {type(options).__name__}"
            )

        normalized = {normalize_option_key(key): value for key, value in options.items()}
        self._options = self._validate_options({**self._options, **normalized})
        self.logger.debug(f"Options set for {self.filter_name}: {sorted(normalized)}")
        return self

    def get_options(self) -> Dict[str, Any]:
        return dict(self._options)

    def get_option(self, name: str, default: Any = None) -> Any:
        return self._options.get(normalize_option_key(name), default)


__all__ = ["Filter", "AbstractFilter", "FilterOptions", "normalize_option_key"]
