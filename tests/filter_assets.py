# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

"""Small filters and callables shared by the test modules"""

import re

from filterbox.core.filters.base import Filter


class LowerCase(Filter):
    def filter(self, value):
        return value.lower()


class StripUpperCase(Filter):
    def filter(self, value):
        return re.sub(r"[A-Z]", "", value)


def append_suffix(value, suffix="!"):
    return f"{value}{suffix}"


def explode(value):
    raise RuntimeError(f"cannot filter {value!r}")
