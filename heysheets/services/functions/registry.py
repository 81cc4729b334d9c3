"""
Function Registry - the versioned catalog of invocable functions

The registry only knows about declarations. Handlers live in the executor's
dispatch table, and the two are reconciled once at startup.
"""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

from heysheets.services.functions.definitions import FUNCTION_DEFINITIONS, REGISTRY_VERSION
from heysheets.services.functions.schema import FunctionDefinition

logger = logging.getLogger(__name__)


class FunctionRegistry:
    """
    Immutable lookup of FunctionDefinitions by name.

    Usage:
        from heysheets.services.functions.registry import function_registry

        definition = function_registry.get("get_products")
        openai_tools = function_registry.get_openai_tools_spec()
    """

    def __init__(self, definitions: Iterable[FunctionDefinition], version: str = REGISTRY_VERSION):
        self.version = version
        self._definitions: Dict[str, FunctionDefinition] = {}
        for definition in definitions:
            if definition.name in self._definitions:
                raise ValueError(f"Function {definition.name} is declared twice")
            self._definitions[definition.name] = definition
        logger.debug(f"Function registry v{version} loaded with {len(self._definitions)} functions")

    def get(self, name: str) -> Optional[FunctionDefinition]:
        return self._definitions.get(name)

    @property
    def names(self) -> List[str]:
        return list(self._definitions)

    def get_all(self) -> List[FunctionDefinition]:
        return list(self._definitions.values())

    def get_openai_tools_spec(self) -> List[Dict[str, Any]]:
        """
        Get all functions in OpenAI function calling format.

        Returns a list suitable for passing to the OpenAI API's `tools` parameter.
        """
        return [definition.to_openai_format() for definition in self._definitions.values()]

    def get_functions_prompt(self) -> str:
        """Describe every function for classifiers that take the catalog as prompt text."""
        return "\n".join(definition.to_prompt_format() for definition in self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __iter__(self) -> Iterator[FunctionDefinition]:
        return iter(self._definitions.values())


# Global instance, built once at import
function_registry = FunctionRegistry(FUNCTION_DEFINITIONS)
