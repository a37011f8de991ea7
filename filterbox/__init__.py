# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""Filterbox - composable, priority-ordered value filters"""

__version__ = "1.0.0"

from .core import (  # noqa: E402
    DEFAULT_PRIORITY,
    Filter,
    FilterChain,
    FilterRegistry,
    get_registry,
)

__all__ = [
    "__version__",
    "FilterChain",
    "Filter",
    "FilterRegistry",
    "get_registry",
    "DEFAULT_PRIORITY",
]
