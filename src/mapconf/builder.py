"""Configuration assembly builder."""

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, Union

from .components import ComponentResolver
from .configuration import Configuration
from .document import ConfigDocument, ConfigNode
from .environments import EnvironmentSelector
from .exceptions import ConfigurationParseError, DocumentError, InstantiationError, MapperParseError, ReuseError
from .mappers import MapperDocumentParser, mappers_section
from .properties import PropertyResolver
from .resources import Resources
from .sections import (
    database_id_provider_section,
    object_factory_section,
    object_wrapper_factory_section,
    plugins_section,
    reflector_factory_section,
    type_aliases_section,
    type_handlers_section,
)
from .settings import apply_settings, load_custom_log_impl, load_custom_vfs, read_settings

logger = logging.getLogger(__name__)


class ConfigBuilder:
    """Builds a Configuration from a configuration document, once."""

    def __init__(
        self,
        document: ConfigDocument,
        environment: Optional[str] = None,
        properties: Optional[Dict[str, str]] = None,
        configuration_cls: Type[Configuration] = Configuration,
        resources: Optional[Resources] = None,
        mapper_parser_cls: Type[MapperDocumentParser] = MapperDocumentParser,
    ):
        """Initialize configuration builder.

        Args:
            document: Parsed configuration document
            environment: Id of the environment to select  # (falls back to the document's default)
            properties: Seed variables  # (win over every property declared by the document)
            configuration_cls: Configuration class to populate  # (constructible without arguments)
            resources: Loader for resource references  # (defaults to the working directory)
            mapper_parser_cls: Sub-parser for mapper documents

        Raises:
            InstantiationError: If configuration_cls cannot be constructed
        """
        try:
            self.configuration = configuration_cls()
        except Exception as e:
            raise InstantiationError(configuration_cls, e) from e

        self.document = document
        self.environment = environment
        self.resources = resources or Resources()
        self.mapper_parser_cls = mapper_parser_cls
        self.resolver = ComponentResolver(self.configuration.type_alias_registry)
        self.parsed = False
        self._settings: Dict[str, str] = {}

        if properties is not None:
            self.configuration.variables = dict(properties)
            self.document.set_variables(properties)

    @classmethod
    def from_path(cls, path: Union[str, Path], **kwargs: Any) -> "ConfigBuilder":
        """Create a builder for a YAML or XML document file.

        Relative resources are looked up next to the document, then in the
        working directory, unless ``resources`` is given.
        """
        path = Path(path)
        kwargs.setdefault("resources", Resources([path.resolve().parent, Path.cwd()]))
        return cls(ConfigDocument.load(path), **kwargs)

    @classmethod
    def from_string(cls, text: str, syntax: str = "yaml", **kwargs: Any) -> "ConfigBuilder":
        """Create a builder for document text.

        Args:
            text: Document content
            syntax: "yaml" or "xml"
            **kwargs: Builder options

        Raises:
            DocumentError: If the syntax is unknown or the text malformed
        """
        if syntax == "yaml":
            return cls(ConfigDocument.from_yaml(text), **kwargs)
        if syntax == "xml":
            return cls(ConfigDocument.from_xml(text), **kwargs)
        raise DocumentError(f"Unsupported configuration document syntax: {syntax}")

    def parse(self) -> Configuration:
        """Process every section in its fixed order.

        Returns:
            The populated configuration

        Raises:
            ReuseError: If called a second time
            ConfigurationParseError: If a section fails  # (the original failure is chained)
        """
        if self.parsed:
            raise ReuseError()
        self.parsed = True

        root = self.document.eval_node("/configuration")
        for section, stage in self._stages():
            logger.debug("Processing section %s", section)
            try:
                stage(root)
            except Exception as e:
                resource = e.resource if isinstance(e, MapperParseError) else None
                raise ConfigurationParseError(section, e, resource=resource) from e

        configuration = self.configuration
        logger.info(
            "Built configuration (environment=%s, interceptors=%d, mappers=%d, statements=%d)",
            configuration.environment.id if configuration.environment else None,
            len(configuration.interceptor_chain.interceptors),
            len(configuration.mapper_registry.mappers),
            len(configuration.mapped_statements),
        )
        return configuration

    def _stages(self) -> List[Tuple[str, Callable[[ConfigNode], None]]]:
        """Sections in processing order; each stage reads its node from the root."""
        configuration = self.configuration
        resolver = self.resolver

        def section(name: str, processor: Callable[..., None]) -> Tuple[str, Callable[[ConfigNode], None]]:
            return name, lambda root: processor(root.eval_node(name), configuration, resolver)

        return [
            ("properties", self._properties_stage),
            ("settings", self._read_settings_stage),
            ("settings.vfsImpl", lambda root: load_custom_vfs(self._settings, configuration)),
            ("settings.logImpl", lambda root: load_custom_log_impl(self._settings, configuration, resolver)),
            section("typeAliases", type_aliases_section),
            section("plugins", plugins_section),
            section("objectFactory", object_factory_section),
            section("objectWrapperFactory", object_wrapper_factory_section),
            section("reflectorFactory", reflector_factory_section),
            ("settings.apply", lambda root: apply_settings(self._settings, configuration, resolver)),
            ("environments", self._environments_stage),
            section("databaseIdProvider", database_id_provider_section),
            section("typeHandlers", type_handlers_section),
            ("mappers", self._mappers_stage),
        ]

    def _properties_stage(self, root: ConfigNode) -> None:
        resolver = PropertyResolver(self.resources)
        properties = resolver.resolve(root.eval_node("properties"), self.configuration.variables)
        if properties is not None:
            self.document.set_variables(properties)
            self.configuration.variables = properties

    def _read_settings_stage(self, root: ConfigNode) -> None:
        self._settings = read_settings(root.eval_node("settings"), type(self.configuration))

    def _environments_stage(self, root: ConfigNode) -> None:
        selector = EnvironmentSelector(self.resolver)
        self.environment = selector.select(root.eval_node("environments"), self.configuration, self.environment)

    def _mappers_stage(self, root: ConfigNode) -> None:
        mappers_section(root.eval_node("mappers"), self.configuration, self.resources, self.mapper_parser_cls)
