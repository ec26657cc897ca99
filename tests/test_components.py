"""Test cases for type aliases, plugins, pluggable factories and type handlers."""

import pytest

from mapconf import ConfigurationParseError
from mapconf.components import ComponentDescriptor, ComponentResolver
from mapconf.configuration import Configuration, ExecutorType, JdbcType
from mapconf.exceptions import BuilderError, ClassResolutionError, InstantiationError
from mapconf.registry import TypeAliasRegistry
from tests.data.aliases.domain import Author, Post
from tests.data.components import (
    AuditInterceptor,
    CachingReflectorFactory,
    EnumNameHandler,
    NoWrapperFactory,
    PropertyRecorder,
    RecordingInterceptor,
)
from tests.data.handlers.text import ClobHandler, UpperStringHandler


class TestTypeAliases:
    def test_package_scan_and_single_aliases(self, build):
        """Test alias registration.

        Given a package scan and two single aliases, one without an explicit name
        When the document is built
        Then aliases resolve case-insensitively to their types
        """
        configuration = build(
            """
            configuration:
              typeAliases:
                - package: {name: tests.data.aliases}
                - typeAlias: {alias: Recorder, type: tests.data.components.RecordingInterceptor}
                - typeAlias: {type: tests.data.components.AuditInterceptor}
            """
        )

        registry = configuration.type_alias_registry
        assert registry.resolve_alias("author") is Author
        assert registry.resolve_alias("ARTICLE") is Post
        assert registry.resolve_alias("recorder") is RecordingInterceptor
        assert registry.resolve_alias("AuditInterceptor") is AuditInterceptor

    def test_conflicting_alias(self, build):
        with pytest.raises(ConfigurationParseError) as exc_info:
            build(
                """
                configuration:
                  typeAliases:
                    typeAlias:
                      - {alias: JDBC, type: tests.data.components.RecordingInterceptor}
                """
            )

        assert exc_info.value.section == "typeAliases"
        assert "already mapped" in str(exc_info.value.__cause__)

    def test_unimportable_alias_type(self, build):
        with pytest.raises(ConfigurationParseError) as exc_info:
            build("configuration: {typeAliases: {typeAlias: {alias: gone, type: tests.data.components.Gone}}}")

        assert "Error registering typeAlias for 'gone'" in str(exc_info.value.__cause__)

    def test_builtin_aliases(self):
        registry = TypeAliasRegistry()

        assert registry.resolve_alias("String") is str
        assert registry.resolve_alias("map") is dict
        assert registry.resolve_alias(None) is None


class TestPlugins:
    def test_interceptors_keep_document_order(self, build):
        """Test that interceptors wrap targets in declaration order.

        Given two interceptors declared audit-first
        When the chain wraps a target
        Then the audit interceptor is applied first
        """
        configuration = build(
            """
            configuration:
              plugins:
                plugin:
                  - interceptor: tests.data.components.AuditInterceptor
                    property: [{name: tag, value: audit}]
                  - interceptor: tests.data.components.RecordingInterceptor
                    property: [{name: tag, value: record}]
            """
        )

        chain = configuration.interceptor_chain
        assert [type(i) for i in chain.interceptors] == [AuditInterceptor, RecordingInterceptor]
        assert chain.plugin_all("executor") == "executor+audit+record"

    def test_unresolvable_interceptor(self, build):
        with pytest.raises(ConfigurationParseError) as exc_info:
            build("configuration: {plugins: {plugin: {interceptor: tests.data.components.Missing}}}")

        assert exc_info.value.section == "plugins"
        assert isinstance(exc_info.value.__cause__, ClassResolutionError)


class TestFactories:
    def test_factory_sections_replace_defaults(self, build):
        configuration = build(
            """
            configuration:
              objectWrapperFactory: {type: tests.data.components.NoWrapperFactory}
              reflectorFactory: {type: tests.data.components.CachingReflectorFactory}
            """
        )

        assert isinstance(configuration.object_wrapper_factory, NoWrapperFactory)
        assert isinstance(configuration.reflector_factory, CachingReflectorFactory)

    def test_default_factories(self, build):
        configuration = build("configuration: {}")

        assert configuration.object_factory.create(list) == []
        assert configuration.object_wrapper_factory.has_wrapper_for(object()) is False
        assert "name" in configuration.reflector_factory.find_for_class(Author).property_names


class TestComponentResolver:
    @pytest.fixture
    def resolver(self) -> ComponentResolver:
        return ComponentResolver(Configuration().type_alias_registry)

    def test_create_passes_properties_to_any_component(self, resolver: ComponentResolver):
        descriptor = ComponentDescriptor("tests.data.components.PropertyRecorder", {"a": "1"})

        component = resolver.create(descriptor)

        assert isinstance(component, PropertyRecorder)
        assert component.received == {"a": "1"}

    def test_create_without_type(self, resolver: ComponentResolver):
        with pytest.raises(ClassResolutionError):
            resolver.create(ComponentDescriptor(None))

    def test_instantiation_failure(self, resolver: ComponentResolver):
        with pytest.raises(InstantiationError, match="ArgumentRequiringFactory"):
            resolver.create_instance("tests.data.components.ArgumentRequiringFactory")

    def test_describe_component(self, resolver: ComponentResolver):
        """Test the documented-properties description of a component."""
        description = resolver.describe_component("tests.data.components.RecordingInterceptor")

        assert description.startswith("tests.data.components.RecordingInterceptor:")
        assert "Interceptor that tags every target it wraps." in description
        assert "capabilities: configurable, interceptor" in description
        assert "tag(str): Label appended to wrapped targets" in description

    def test_describe_builtin_alias(self, resolver: ComponentResolver):
        description = resolver.describe_component("UNPOOLED")

        assert description.startswith("mapconf.defaults.UnpooledDataSourceFactory:")
        assert "capabilities: configurable" in description


TYPE_HANDLERS = """
configuration:
  typeHandlers:
    typeHandler:
      - {{{declaration}}}
"""


class TestTypeHandlers:
    def registry(self, build, declaration: str):
        return build(TYPE_HANDLERS.format(declaration=declaration)).type_handler_registry

    def test_java_and_jdbc_type(self, build):
        """javaType and jdbcType register exactly that pair."""
        registry = self.registry(
            build, "javaType: str, jdbcType: VARCHAR, handler: tests.data.handlers.text.UpperStringHandler"
        )

        assert list(registry.handlers) == [(str, JdbcType.VARCHAR)]
        assert isinstance(registry.get_handler(str, JdbcType.VARCHAR), UpperStringHandler)

    def test_java_type_uses_handler_jdbc_declarations(self, build):
        """javaType alone uses the handler's own jdbc types."""
        registry = self.registry(build, "javaType: string, handler: tests.data.handlers.text.ClobHandler")

        assert set(registry.handlers) == {(str, JdbcType.CLOB), (str, JdbcType.LONGVARCHAR), (str, None)}

    def test_jdbc_type_without_java_type_is_ignored(self, build):
        """A lone jdbcType does not change the registration."""
        registry = self.registry(build, "jdbcType: VARCHAR, handler: tests.data.handlers.text.UpperStringHandler")

        assert list(registry.handlers) == [(str, None)]

    def test_handler_constructed_with_java_type(self, build):
        registry = self.registry(
            build, "javaType: mapconf.configuration.ExecutorType, handler: tests.data.components.EnumNameHandler"
        )

        handler = registry.get_handler(ExecutorType)
        assert isinstance(handler, EnumNameHandler)
        assert handler.type is ExecutorType

    def test_handler_without_mapped_types(self, build):
        registry = self.registry(build, "handler: tests.data.handlers.text.ClobHandler")

        assert isinstance(registry.get_handler(None), ClobHandler)

    def test_unknown_jdbc_type(self, build):
        with pytest.raises(ConfigurationParseError) as exc_info:
            self.registry(build, "javaType: str, jdbcType: VARCHAR2, handler: tests.data.handlers.text.ClobHandler")

        assert exc_info.value.section == "typeHandlers"
        assert isinstance(exc_info.value.__cause__, BuilderError)
        assert "VARCHAR2" in str(exc_info.value)

    def test_package_scan(self, build):
        registry = build(
            """
            configuration:
              typeHandlers:
                - package: {name: tests.data.handlers}
            """
        ).type_handler_registry

        assert isinstance(registry.get_handler(str), UpperStringHandler)
        assert isinstance(registry.get_handler(None), ClobHandler)
        # Exact pair missing, falls back to the handler registered without a jdbc type
        assert isinstance(registry.get_handler(str, JdbcType.CHAR), UpperStringHandler)
