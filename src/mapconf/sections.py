"""Section processors for aliases, plugins, factories, database id and type handlers.

Each processor takes the section node (None when the section is absent, which
is a no-op), the configuration receiving the registrations and the component
resolver. A processor either completes its registrations or raises.
"""

import logging
from typing import Any, Optional

from .components import ComponentDescriptor, ComponentResolver
from .configuration import Configuration, JdbcType
from .document import ConfigNode
from .exceptions import BuilderError, ClassResolutionError
from .utils import import_object

logger = logging.getLogger(__name__)

PACKAGE = "package"


def type_aliases_section(node: Optional[ConfigNode], configuration: Configuration, resolver: ComponentResolver) -> None:
    """Register package scans and single aliases, in document order.

    Raises:
        BuilderError: If an alias type cannot be imported or clashes with an existing alias
    """
    if node is None:
        return
    registry = configuration.type_alias_registry
    for child in node.get_children():
        if child.name == PACKAGE:
            registry.register_aliases(child.get_string_attribute("name"))
            continue

        alias = child.get_string_attribute("alias")
        type_name = child.get_string_attribute("type")
        try:
            cls = import_object(type_name)
        except (ImportError, AttributeError, TypeError) as e:
            raise BuilderError(f"Error registering typeAlias for '{alias}'. Cause: {e}") from e
        if alias is None:
            registry.register_alias(cls)
        else:
            registry.register_alias(alias, cls)


def plugins_section(node: Optional[ConfigNode], configuration: Configuration, resolver: ComponentResolver) -> None:
    """Create every declared interceptor and append it to the chain in document order."""
    if node is None:
        return
    for child in node.get_children():
        interceptor = resolver.create(ComponentDescriptor.from_node(child, attribute="interceptor"))
        configuration.add_interceptor(interceptor)
        logger.debug("Added interceptor %s", type(interceptor).__qualname__)


def object_factory_section(
    node: Optional[ConfigNode], configuration: Configuration, resolver: ComponentResolver
) -> None:
    if node is None:
        return
    configuration.object_factory = resolver.create(ComponentDescriptor.from_node(node))


def object_wrapper_factory_section(
    node: Optional[ConfigNode], configuration: Configuration, resolver: ComponentResolver
) -> None:
    if node is None:
        return
    configuration.object_wrapper_factory = resolver.create(ComponentDescriptor.from_node(node))


def reflector_factory_section(
    node: Optional[ConfigNode], configuration: Configuration, resolver: ComponentResolver
) -> None:
    if node is None:
        return
    configuration.reflector_factory = resolver.create(ComponentDescriptor.from_node(node))


def database_id_provider_section(
    node: Optional[ConfigNode], configuration: Configuration, resolver: ComponentResolver
) -> None:
    """Create the database id provider and compute the database id of the installed environment.

    The legacy type name ``VENDOR`` is accepted as ``DB_VENDOR``. Without an
    installed environment the provider is created but no id is computed.
    """
    if node is None:
        return
    descriptor = ComponentDescriptor.from_node(node)
    if descriptor.type_name == "VENDOR":
        descriptor.type_name = "DB_VENDOR"
    provider = resolver.create(descriptor)

    environment = configuration.environment
    if environment is not None:
        configuration.database_id = provider.get_database_id(environment.data_source)
        logger.debug("Resolved database id %r", configuration.database_id)


def type_handlers_section(
    node: Optional[ConfigNode], configuration: Configuration, resolver: ComponentResolver
) -> None:
    """Register type handlers.

    Declaration forms:

    * ``package``: every TypeHandler subclass in the package
    * ``javaType`` and ``jdbcType``: the handler for exactly that pair
    * ``javaType`` only: the handler for that type, with its own jdbc type declarations
    * no ``javaType``: the handler alone, described by its ``mapped_types``
      (a lone ``jdbcType`` is ignored)
    """
    if node is None:
        return
    registry = configuration.type_handler_registry
    for child in node.get_children():
        if child.name == PACKAGE:
            registry.register_package(child.get_string_attribute("name"))
            continue

        java_type = resolver.resolve_class(child.get_string_attribute("javaType"))
        jdbc_type = resolve_jdbc_type(child.get_string_attribute("jdbcType"))
        handler_cls = resolver.resolve_class(child.get_string_attribute("handler"))
        if handler_cls is None:
            raise ClassResolutionError("", ValueError("typeHandler requires a handler attribute"))

        if java_type is not None:
            if jdbc_type is None:
                registry.register_for_java_type(java_type, handler_cls)
            else:
                registry.register_for_types(java_type, jdbc_type, handler_cls)
        else:
            registry.register_handler(handler_cls)


def resolve_jdbc_type(name: Optional[str]) -> Optional[Any]:
    """Look up a JdbcType member by name.

    Raises:
        BuilderError: If the name is not a JdbcType
    """
    if name is None:
        return None
    try:
        return JdbcType[name]
    except KeyError:
        raise BuilderError(f"Error resolving JdbcType. Cause: no JdbcType named {name!r}") from None
