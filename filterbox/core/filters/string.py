# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0
# Filterbox String Filters

"""
String filters

Filters:
    - StringTrim: strip whitespace or a custom character list
    - StringToLower / StringToUpper: case conversion
    - PregReplace: regex replacement
    - ToInt: numeric strings to integers

Usage in a chain configuration:
    filters:
      - name: string_trim
        options:
          charlist: " -"
      - name: preg_replace
        options:
          pattern: "Foo"
          replacement: "Bar"
        priority: 900
"""

import math
import re
from typing import Any, List, Optional, Union

from pydantic import field_validator

from filterbox.core.exceptions import ConfigError
from filterbox.core.filters.base import AbstractFilter, FilterOptions


def _to_text(value: Any, encoding: str) -> Optional[str]:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode(encoding)
        except UnicodeDecodeError:
            return None
    return None


# === Trim ===


class StringTrimOptions(FilterOptions):
    charlist: Optional[str] = None

    @field_validator("charlist")
    @classmethod
    def empty_means_whitespace(cls, v):
        return v or None


class StringTrim(AbstractFilter):
    """Strips whitespace (or ``charlist`` characters) from both ends"""

    options_schema = StringTrimOptions

    def __init__(self, charlist_or_options: Any = None):
        if isinstance(charlist_or_options, str):
            charlist_or_options = {"charlist": charlist_or_options}
        super().__init__(charlist_or_options)

    def filter(self, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        return value.strip(self._options["charlist"])


# === Case ===


class CaseOptions(FilterOptions):
    encoding: str = "utf-8"

    @field_validator("encoding")
    @classmethod
    def known_encoding(cls, v):
        import codecs

        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown encoding: {v}")
        return v


class StringToLower(AbstractFilter):
    options_schema = CaseOptions

    def filter(self, value: Any) -> Any:
        text = _to_text(value, self._options["encoding"])
        if text is None:
            return value
        return text.lower()


class StringToUpper(AbstractFilter):
    options_schema = CaseOptions

    def filter(self, value: Any) -> Any:
        text = _to_text(value, self._options["encoding"])
        if text is None:
            return value
        return text.upper()


# === Regex ===


class PregReplaceOptions(FilterOptions):
    pattern: Optional[Union[str, List[str]]] = None
    replacement: Union[str, List[str]] = ""

    @field_validator("pattern")
    @classmethod
    def compiles(cls, v):
        for pattern in [v] if isinstance(v, str) else v or []:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid regex {pattern!r}: {e}")
        return v


class PregReplace(AbstractFilter):
    """
    Regex search and replace.

    ``pattern`` and ``replacement`` may both be lists; patterns are applied
    in order, each with the replacement at the same index (or the single
    replacement string).
    """

    options_schema = PregReplaceOptions

    def filter(self, value: Any) -> Any:
        pattern = self._options["pattern"]
        if pattern is None:
            raise ConfigError(f"{self.filter_name} has no pattern configured")
        if not isinstance(value, str):
            return value

        patterns = [pattern] if isinstance(pattern, str) else pattern
        replacement = self._options["replacement"]
        for index, item in enumerate(patterns):
            if isinstance(replacement, str):
                repl = replacement
            else:
                repl = replacement[index] if index < len(replacement) else ""
            value = re.sub(item, repl, value)
        return value


# === Conversion ===


class ToInt(AbstractFilter):
    """Converts numeric strings and floats to ``int``"""

    def filter(self, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, float):
            return int(value) if math.isfinite(value) else value
        if not isinstance(value, str):
            return value

        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return int(float(text))
        except (ValueError, OverflowError):
            return value


__all__ = [
    "StringTrim",
    "StringToLower",
    "StringToUpper",
    "PregReplace",
    "ToInt",
]
