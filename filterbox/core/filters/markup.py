# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0
# Filterbox Markup Filters

"""
Markup filters

StripTags removes HTML/XML tags and comments. Text between tags is kept.
Tags listed in ``allow_tags`` survive, lowercased, keeping only the
attributes listed in ``allow_attribs`` (or per tag, when ``allow_tags`` is
a mapping of tag name to attribute names).

Example:
    StripTags({"allowTags": "img", "allowAttribs": "id"})
    '<a name="foo">abc</a><img id="bar" class="x" />'
        -> 'abc<img id="bar" />'
"""

import re
from typing import Any, Dict, List, Set

from pydantic import field_validator

from filterbox.core.filters.base import AbstractFilter, FilterOptions

_COMMENT = re.compile(r"<!--.*?(?:-->|$)", re.DOTALL)
_TAG = re.compile(r"<(/?)\s*([a-zA-Z][\w:-]*)([^>]*)>")
_ATTRIBUTE = re.compile(r"""([\w:-]+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s"'>/]+))?""")


def _as_name_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip().lower()] if value.strip() else []
    return [str(item).strip().lower() for item in value if str(item).strip()]


class StripTagsOptions(FilterOptions):
    allow_tags: Dict[str, List[str]] = {}
    allow_attribs: List[str] = []

    @field_validator("allow_tags", mode="before")
    @classmethod
    def tags_to_mapping(cls, v):
        if isinstance(v, dict):
            return {str(tag).lower(): _as_name_list(attribs) for tag, attribs in v.items()}
        return {tag: [] for tag in _as_name_list(v)}

    @field_validator("allow_attribs", mode="before")
    @classmethod
    def attribs_to_list(cls, v):
        return _as_name_list(v)


class StripTags(AbstractFilter):
    options_schema = StripTagsOptions

    def _allowed_attributes(self, tag: str) -> Set[str]:
        return set(self._options["allow_attribs"]) | set(self._options["allow_tags"][tag])

    def _rebuild(self, match: "re.Match[str]") -> str:
        closing, tag, rest = match.group(1), match.group(2).lower(), match.group(3)
        if tag not in self._options["allow_tags"]:
            return ""
        if closing:
            return f"</{tag}>"

        self_closing = rest.rstrip().endswith("/")
        allowed = self._allowed_attributes(tag)
        attributes = []
        for name, value in _ATTRIBUTE.findall(rest):
            if name.lower() not in allowed:
                continue
            attributes.append(f"{name.lower()}={value}" if value else name.lower())

        rebuilt = "<" + tag
        if attributes:
            rebuilt += " " + " ".join(attributes)
        if self_closing:
            rebuilt += " /"
        return rebuilt + ">"

    def filter(self, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        value = _COMMENT.sub("", value)
        return _TAG.sub(self._rebuild, value)


__all__ = ["StripTags"]
