# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""
Filterbox Filters Package

Base classes plus the built-in leaf filters. The registry imports the
leaf modules lazily; importing them here is safe, they only depend on
``base``.
"""

from .base import AbstractFilter, Filter, FilterOptions, normalize_option_key
from .callback import CallbackFilter, callable_reference, resolve_callable
from .markup import StripTags
from .string import PregReplace, StringToLower, StringToUpper, StringTrim, ToInt

__all__ = [
    # Base
    "Filter",
    "AbstractFilter",
    "FilterOptions",
    "normalize_option_key",
    # Callbacks
    "CallbackFilter",
    "resolve_callable",
    "callable_reference",
    # Leaf filters
    "StringTrim",
    "StringToLower",
    "StringToUpper",
    "StripTags",
    "PregReplace",
    "ToInt",
]
