"""Dynamic component resolution: name or alias -> type -> instance -> configured instance."""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import docstring_parser

from .document import ConfigNode
from .exceptions import ClassResolutionError, InstantiationError
from .registry import TypeAliasRegistry

logger = logging.getLogger(__name__)


@dataclass
class ComponentDescriptor:
    """A type name or alias plus the properties to configure the instance with."""

    type_name: Optional[str]
    properties: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_node(cls, node: ConfigNode, attribute: str = "type") -> "ComponentDescriptor":
        """Read the descriptor declared by a node.

        Args:
            node: Declaring node  # (e.g. <objectFactory type="...">)
            attribute: Attribute naming the type

        Returns:
            Descriptor with the node's child properties
        """
        return cls(node.get_string_attribute(attribute), node.children_as_properties())


class ComponentResolver:
    """Resolves, constructs and configures pluggable components."""

    def __init__(self, alias_registry: TypeAliasRegistry):
        """Initialize component resolver.

        Args:
            alias_registry: Registry consulted before falling back to dotted imports
        """
        self.alias_registry = alias_registry

    def resolve_class(self, name: Optional[str]) -> Optional[Any]:
        """Resolve a type name or alias.

        Args:
            name: Alias or dotted path  # (None resolves to None)

        Returns:
            Resolved type

        Raises:
            ClassResolutionError: If the name cannot be resolved
        """
        if name is None:
            return None
        try:
            return self.alias_registry.resolve_alias(name)
        except ImportError as e:
            raise ClassResolutionError(name, e) from e

    def instantiate(self, cls: Any) -> Any:
        """Construct a type with no arguments.

        Raises:
            InstantiationError: If construction fails
        """
        try:
            return cls()
        except Exception as e:
            raise InstantiationError(cls, e) from e

    def create(self, descriptor: ComponentDescriptor) -> Any:
        """Resolve, construct and configure a component.

        Args:
            descriptor: Type name and properties

        Returns:
            Configured instance

        Raises:
            ClassResolutionError: If the type is missing or cannot be resolved
            InstantiationError: If the type cannot be constructed without arguments
        """
        cls = self.resolve_class(descriptor.type_name)
        if cls is None:
            raise ClassResolutionError("None", ValueError("no type declared"))

        instance = self.instantiate(cls)
        configure = getattr(instance, "set_properties", None)
        if callable(configure):
            configure(dict(descriptor.properties))
        logger.debug("Created component %s with %d properties", _display_name(cls), len(descriptor.properties))
        return instance

    def create_instance(self, name: Optional[str]) -> Optional[Any]:
        """Resolve and construct a component without configuring it (None for a None name)."""
        cls = self.resolve_class(name)
        if cls is None:
            return None
        return self.instantiate(cls)

    def describe_component(self, name: str) -> str:
        """Describe a component's purpose and documented properties.

        Properties are read from the class docstring's parameter section
        (``Args:`` / ``Properties:`` style sections are both accepted).

        Args:
            name: Alias or dotted path

        Returns:
            Formatted multi-line description  # (for console output)
        """
        cls = self.resolve_class(name)
        lines = [f"{_display_name(cls)}:"]

        docstring = inspect.getdoc(cls)
        if not docstring:
            lines.append("    (undocumented)")
            return "\n".join(lines)

        parsed = docstring_parser.parse(docstring.replace("Properties:", "Args:"))
        if parsed.short_description:
            lines.append(f"    {parsed.short_description}")

        capabilities = [
            label
            for attribute, label in (("set_properties", "configurable"), ("plugin", "interceptor"))
            if callable(getattr(cls, attribute, None))
        ]
        if capabilities:
            lines.append(f"    capabilities: {', '.join(capabilities)}")

        for param in parsed.params:
            param_line = f"    {param.arg_name}"
            if param.type_name:
                param_line += f"({param.type_name})"
            if param.description:
                param_line += f": {param.description}"
            lines.append(param_line)
        return "\n".join(lines)


def _display_name(obj: Any) -> str:
    if not hasattr(obj, "__qualname__"):
        return repr(obj)
    return f"{obj.__module__}.{obj.__qualname__}"
