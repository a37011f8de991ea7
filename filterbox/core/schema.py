# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

from typing import Any, Dict, List, Optional

from filterbox.core.config import ChainConfig
from filterbox.core.registry import FilterRegistry, get_registry


class ChainSchemaGenerator:
    """
    Generates JSON Schema for chain configuration files.
    Enables completion of filter names in editors.
    """

    @staticmethod
    def generate(registry: Optional[FilterRegistry] = None) -> Dict[str, Any]:
        registry = registry or get_registry()

        schema = ChainConfig.model_json_schema()
        schema["$schema"] = "http://json-schema.org/draft-07/schema#"
        schema["title"] = "Filterbox Chain"
        schema["description"] = "Configuration for a filterbox FilterChain"

        filter_spec = schema.get("$defs", {}).get("FilterSpec")
        if filter_spec is not None:
            filter_spec["properties"]["name"]["examples"] = (
                ChainSchemaGenerator._get_filter_names(registry)
            )

        callback_spec = schema.get("$defs", {}).get("CallbackSpec")
        if callback_spec is not None:
            # Callables cannot appear in a file, only import references
            callback_spec["properties"]["callback"] = {
                "type": "string",
                "description": "Import reference, e.g. 'builtins:str.upper'",
            }

        return schema

    @staticmethod
    def _get_filter_names(registry: FilterRegistry) -> List[str]:
        """Canonical names followed by their aliases"""
        names = []
        for name, aliases in registry.list_aliases().items():
            names.append(name)
            names.extend(aliases)
        return names


__all__ = ["ChainSchemaGenerator"]
