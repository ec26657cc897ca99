"""Runtime configuration aggregate populated by the builder."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Any, Dict, List, Optional, Set

from .defaults import (
    DefaultObjectFactory,
    DefaultObjectWrapperFactory,
    DefaultReflectorFactory,
    JdbcTransactionFactory,
    ManagedTransactionFactory,
    NoLoggingLog,
    PooledDataSourceFactory,
    StdlibLog,
    UnpooledDataSourceFactory,
    VendorDatabaseIdProvider,
)
from .exceptions import BuilderError
from .registry import InterceptorChain, MapperRegistry, TypeAliasRegistry, TypeHandlerRegistry

logger = logging.getLogger(__name__)


class AutoMappingBehavior(Enum):
    NONE = "NONE"
    PARTIAL = "PARTIAL"
    FULL = "FULL"


class AutoMappingUnknownColumnBehavior(Enum):
    NONE = "NONE"
    WARNING = "WARNING"
    FAILING = "FAILING"


class ExecutorType(Enum):
    SIMPLE = "SIMPLE"
    REUSE = "REUSE"
    BATCH = "BATCH"


class LocalCacheScope(Enum):
    SESSION = "SESSION"
    STATEMENT = "STATEMENT"


class ResultSetType(Enum):
    DEFAULT = "DEFAULT"
    FORWARD_ONLY = "FORWARD_ONLY"
    SCROLL_INSENSITIVE = "SCROLL_INSENSITIVE"
    SCROLL_SENSITIVE = "SCROLL_SENSITIVE"


JdbcType = Enum(
    "JdbcType",
    [
        "ARRAY", "BIT", "TINYINT", "SMALLINT", "INTEGER", "BIGINT", "FLOAT", "REAL", "DOUBLE", "NUMERIC",
        "DECIMAL", "CHAR", "VARCHAR", "LONGVARCHAR", "DATE", "TIME", "TIMESTAMP", "BINARY", "VARBINARY",
        "LONGVARBINARY", "NULL", "OTHER", "BLOB", "CLOB", "BOOLEAN", "CURSOR", "UNDEFINED", "NVARCHAR",
        "NCHAR", "NCLOB", "STRUCT", "JAVA_OBJECT", "DISTINCT", "REF", "DATALINK", "ROWID", "LONGNVARCHAR",
        "SQLXML", "DATETIMEOFFSET", "TIME_WITH_TIMEZONE", "TIMESTAMP_WITH_TIMEZONE",
    ],
    module=__name__,
)  # fmt: skip


@dataclass(frozen=True)
class Environment:
    """The selected deployment environment."""

    id: str
    transaction_factory: Any
    data_source: Any

    def __post_init__(self):
        if self.id is None:
            raise BuilderError("Parameter 'id' must not be null")
        if self.transaction_factory is None:
            raise BuilderError("Parameter 'transaction_factory' must not be null")
        if self.data_source is None:
            raise BuilderError("Parameter 'data_source' must not be null")


@dataclass(frozen=True)
class MappedStatement:
    """A statement definition contributed by a mapper document."""

    id: str
    sql: str
    kind: str = "select"
    resource: Optional[str] = None


class Configuration:
    """Receiver of every registration made while parsing a configuration document.

    Public attributes that are not registries are settable properties; their
    names are what settings keys are validated against.
    """

    READ_ONLY = frozenset(
        {
            "type_alias_registry",
            "type_handler_registry",
            "mapper_registry",
            "interceptor_chain",
            "sql_fragments",
            "mapped_statements",
            "loaded_resources",
            "user_vfs_impls",
        }
    )
    # Assigned by their own sections, never by a settings entry
    SECTION_MANAGED = frozenset(
        {"variables", "environment", "database_id", "object_factory", "object_wrapper_factory", "reflector_factory"}
    )

    def __init__(self):
        self.variables: Dict[str, str] = {}
        self.environment: Optional[Environment] = None
        self.database_id: Optional[str] = None

        # Settings
        self.auto_mapping_behavior = AutoMappingBehavior.PARTIAL
        self.auto_mapping_unknown_column_behavior = AutoMappingUnknownColumnBehavior.NONE
        self.cache_enabled = True
        self.proxy_factory: Any = None
        self.lazy_loading_enabled = False
        self.aggressive_lazy_loading = False
        self.use_column_label = True
        self.use_generated_keys = False
        self.default_executor_type = ExecutorType.SIMPLE
        self.default_statement_timeout: Optional[int] = None
        self.default_fetch_size: Optional[int] = None
        self.default_result_set_type: Optional[ResultSetType] = None
        self.map_underscore_to_camel_case = False
        self.safe_row_bounds_enabled = False
        self.local_cache_scope = LocalCacheScope.SESSION
        self.jdbc_type_for_null = JdbcType.OTHER
        self.lazy_load_trigger_methods: Set[str] = {"equals", "clone", "hashCode", "toString"}
        self.safe_result_handler_enabled = True
        self.default_scripting_language: Optional[type] = None
        self.default_enum_type_handler: Optional[type] = None
        self.call_setters_on_nulls = False
        self.use_actual_param_name = True
        self.return_instance_for_empty_row = False
        self.log_prefix: Optional[str] = None
        self.configuration_factory: Optional[type] = None
        self.shrink_whitespaces_in_sql = False
        self.arg_name_based_constructor_auto_mapping = False
        self.default_sql_provider_type: Optional[type] = None
        self.nullable_on_for_each = False

        # Pluggable factories
        self.object_factory: Any = DefaultObjectFactory()
        self.object_wrapper_factory: Any = DefaultObjectWrapperFactory()
        self.reflector_factory: Any = DefaultReflectorFactory()
        self._vfs_impl: Optional[type] = None
        self._log_impl: Optional[type] = None

        # Registries
        self.type_alias_registry = TypeAliasRegistry()
        self.type_handler_registry = TypeHandlerRegistry()
        self.mapper_registry = MapperRegistry()
        self.interceptor_chain = InterceptorChain()
        self.sql_fragments: Dict[str, Any] = {}
        self.mapped_statements: Dict[str, MappedStatement] = {}
        self.loaded_resources: Set[str] = set()
        self.user_vfs_impls: List[type] = []

        self._register_default_aliases()

    def _register_default_aliases(self) -> None:
        registry = self.type_alias_registry
        registry.register_alias("JDBC", JdbcTransactionFactory)
        registry.register_alias("MANAGED", ManagedTransactionFactory)
        registry.register_alias("UNPOOLED", UnpooledDataSourceFactory)
        registry.register_alias("POOLED", PooledDataSourceFactory)
        registry.register_alias("DB_VENDOR", VendorDatabaseIdProvider)
        registry.register_alias("STDLIB_LOGGING", StdlibLog)
        registry.register_alias("NO_LOGGING", NoLoggingLog)

    @classmethod
    def has_setter(cls, name: str) -> bool:
        """Check whether a snake_case name is a settable property of this configuration class.

        Args:
            name: Attribute name

        Returns:
            True if the attribute can be assigned by a settings entry
        """
        if name.startswith("_") or name.isupper() or name in cls.READ_ONLY or name in cls.SECTION_MANAGED:
            return False
        attr = getattr(cls, name, None)
        if isinstance(attr, property):
            return attr.fset is not None
        if callable(attr):
            return False
        return hasattr(cls, name) or name in _instance_attributes(cls)

    @property
    def vfs_impl(self) -> Optional[type]:
        return self._vfs_impl

    @vfs_impl.setter
    def vfs_impl(self, vfs_impl: Optional[type]) -> None:
        if vfs_impl is not None:
            self._vfs_impl = vfs_impl
            self.user_vfs_impls.append(vfs_impl)

    @property
    def log_impl(self) -> Optional[type]:
        return self._log_impl

    @log_impl.setter
    def log_impl(self, log_impl: Optional[type]) -> None:
        if log_impl is not None:
            self._log_impl = log_impl
            logger.debug("Using log implementation %s", log_impl.__qualname__)

    def get_log(self, name: str) -> Any:
        """Create a log adapter with the configured implementation (standard logging by default)."""
        return (self._log_impl or StdlibLog)(name)

    def add_interceptor(self, interceptor: Any) -> None:
        self.interceptor_chain.add_interceptor(interceptor)

    def add_mapper(self, mapper_type: type) -> None:
        self.mapper_registry.add_mapper(mapper_type)

    def add_mappers(self, package: str) -> None:
        self.mapper_registry.add_mappers(package)

    def has_mapper(self, mapper_type: type) -> bool:
        return self.mapper_registry.has_mapper(mapper_type)

    def add_mapped_statement(self, statement: MappedStatement) -> None:
        """Register a statement under its fully qualified id.

        Raises:
            BuilderError: If the id is already taken
        """
        if statement.id in self.mapped_statements:
            raise BuilderError(f"Mapped Statements collection already contains value for {statement.id}")
        self.mapped_statements[statement.id] = statement

    def is_resource_loaded(self, resource: str) -> bool:
        return resource in self.loaded_resources

    def add_loaded_resource(self, resource: str) -> None:
        self.loaded_resources.add(resource)

    def summary(self) -> Dict[str, Any]:
        """Plain dictionary view of the assembled configuration.

        Returns:
            Nested dict of primitive values  # (suitable for YAML dumping)
        """

        def _name(value: Any) -> Any:
            if value is None or isinstance(value, (str, int, float, bool)):
                return value
            if isinstance(value, Enum):
                return value.name
            if isinstance(value, type):
                return f"{value.__module__}.{value.__qualname__}"
            return f"{type(value).__module__}.{type(value).__qualname__}"

        settings = {}  # Dict[str, Any] (setting name -> printable value)
        for key, value in vars(self).items():
            if key.startswith("_") or key in self.READ_ONLY or key in self.SECTION_MANAGED:
                continue
            settings[key] = sorted(value) if isinstance(value, set) else _name(value)
        settings["vfs_impl"] = _name(self.vfs_impl)
        settings["log_impl"] = _name(self.log_impl)

        environment = None
        if self.environment is not None:
            environment = {
                "id": self.environment.id,
                "transaction_factory": _name(self.environment.transaction_factory),
                "data_source": _name(self.environment.data_source),
            }

        return {
            "variables": dict(self.variables),
            "environment": environment,
            "database_id": self.database_id,
            "settings": settings,
            "factories": {
                "object_factory": _name(self.object_factory),
                "object_wrapper_factory": _name(self.object_wrapper_factory),
                "reflector_factory": _name(self.reflector_factory),
            },
            "interceptors": [_name(i) for i in self.interceptor_chain.interceptors],
            "type_handlers": sorted({_name(h) for h in self.type_handler_registry.handlers.values()}),
            "mappers": [_name(m) for m in self.mapper_registry.mappers],
            "mapped_statements": sorted(self.mapped_statements),
        }


@lru_cache(maxsize=None)
def _instance_attributes(cls: type) -> frozenset:
    """Names of the attributes a fresh instance of a configuration class assigns in ``__init__``."""
    return frozenset(vars(cls()))
