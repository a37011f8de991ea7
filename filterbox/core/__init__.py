# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Filterbox Core - Init file

Exports the filter chain, its ordering queue, the filter registry and the
configuration entry points.
"""

from .chain import FilterChain
from .config import (
    DEFAULT_PRIORITY,
    ChainConfig,
    FilterBoxConfig,
    get_config,
    load_chain_config,
    load_config,
    parse_chain_config,
)
from .exceptions import (
    ConfigError,
    ConfigFileError,
    ConfigValidationError,
    FilterBoxError,
    FilterNotFoundError,
    InvalidFilterError,
    ResolutionError,
    SerializationError,
)
from .filters import AbstractFilter, CallbackFilter, Filter
from .priority_queue import PriorityQueue
from .registry import FilterRegistry, FilterResolver, get_registry

__all__ = [
    # Chain
    "FilterChain",
    "PriorityQueue",
    "DEFAULT_PRIORITY",
    # Filters
    "Filter",
    "AbstractFilter",
    "CallbackFilter",
    # Resolution
    "FilterRegistry",
    "FilterResolver",
    "get_registry",
    # Configuration
    "ChainConfig",
    "FilterBoxConfig",
    "get_config",
    "load_config",
    "load_chain_config",
    "parse_chain_config",
    # Errors
    "FilterBoxError",
    "ConfigError",
    "ConfigValidationError",
    "ConfigFileError",
    "ResolutionError",
    "FilterNotFoundError",
    "InvalidFilterError",
    "SerializationError",
]
