"""Default component implementations registered under built-in aliases."""

import dataclasses
import importlib
import inspect
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, get_args

from .interfaces import (
    VFS,
    DatabaseIdProvider,
    DataSourceFactory,
    Log,
    ObjectFactory,
    ObjectWrapperFactory,
    ReflectorFactory,
    Transaction,
    TransactionFactory,
)
from .utils import boolean_value_of, camel_to_snake, integer_value_of

logger = logging.getLogger(__name__)


@dataclass
class DataSource:
    """Connection settings for a DB-API 2.0 driver module."""

    driver: Optional[str] = None
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    auto_commit: Optional[bool] = None
    default_transaction_isolation_level: Optional[str] = None
    driver_properties: Dict[str, str] = field(default_factory=dict)

    @property
    def database_product_name(self) -> Optional[str]:
        """Product name reported by the driver module (its top-level module name)."""
        if self.driver is None:
            return None
        module = importlib.import_module(self.driver)
        return getattr(module, "database_product_name", module.__name__.split(".")[0])

    def get_connection(self) -> Any:
        """Open a new connection through the driver's ``connect`` function."""
        module = importlib.import_module(self.driver)
        kwargs: Dict[str, Any] = dict(self.driver_properties)
        if self.username is not None:
            kwargs["user"] = self.username
        if self.password is not None:
            kwargs["password"] = self.password
        args = (self.url,) if self.url is not None else ()
        return module.connect(*args, **kwargs)


@dataclass
class PooledDataSource(DataSource):
    """Data source carrying pool sizing settings; pooling itself is done by the engine."""

    pool_maximum_active_connections: int = 10
    pool_maximum_idle_connections: int = 5
    pool_maximum_checkout_time: int = 20000
    pool_time_to_wait: int = 20000
    pool_ping_query: str = "NO PING QUERY SET"
    pool_ping_enabled: bool = False


class UnpooledDataSourceFactory(DataSourceFactory):
    """Builds a :class:`DataSource`; ``driver.*`` properties are passed to ``connect``."""

    DRIVER_PROPERTY_PREFIX = "driver."
    data_source_cls = DataSource

    def __init__(self):
        self.data_source = self.data_source_cls()

    def set_properties(self, properties: Dict[str, str]) -> None:
        """Apply properties to the data source.

        Raises:
            ValueError: If a property is not known to the data source
        """
        super().set_properties(properties)
        fields = {f.name: f.type for f in dataclasses.fields(self.data_source)}

        for key, value in properties.items():
            if key.startswith(self.DRIVER_PROPERTY_PREFIX):
                self.data_source.driver_properties[key[len(self.DRIVER_PROPERTY_PREFIX) :]] = value
                continue
            attr = camel_to_snake(key)
            if attr not in fields or attr == "driver_properties":
                raise ValueError(f"Unknown DataSource property: {key}")
            setattr(self.data_source, attr, self._convert(fields[attr], key, value))

    def get_data_source(self) -> DataSource:
        return self.data_source

    def _convert(self, annotation: Any, key: str, value: str) -> Any:
        types = get_args(annotation) or (annotation,)
        if bool in types:
            return boolean_value_of(value, False)
        if int in types:
            return integer_value_of(value, None)
        return value


class PooledDataSourceFactory(UnpooledDataSourceFactory):
    data_source_cls = PooledDataSource


class JdbcTransaction(Transaction):
    """Transaction that commits and rolls back on its own connection."""

    def __init__(
        self,
        data_source: DataSource,
        isolation_level: Optional[str],
        auto_commit: bool,
        skip_set_auto_commit_on_close: bool,
    ):
        self.data_source = data_source
        self.isolation_level = isolation_level
        self.auto_commit = auto_commit
        self.skip_set_auto_commit_on_close = skip_set_auto_commit_on_close
        self.connection = None

    def get_connection(self) -> Any:
        if self.connection is None:
            self.connection = self.data_source.get_connection()
        return self.connection

    def commit(self) -> None:
        if self.connection is not None and not self.auto_commit:
            self.connection.commit()

    def rollback(self) -> None:
        if self.connection is not None and not self.auto_commit:
            self.connection.rollback()

    def close(self) -> None:
        if self.connection is not None:
            self.connection.close()
            self.connection = None


class ManagedTransaction(JdbcTransaction):
    """Transaction whose commit and rollback are left to an external manager."""

    def __init__(self, data_source: DataSource, isolation_level: Optional[str], close_connection: bool):
        super().__init__(data_source, isolation_level, auto_commit=False, skip_set_auto_commit_on_close=True)
        self.close_connection = close_connection

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass

    def close(self) -> None:
        if self.close_connection:
            super().close()


class JdbcTransactionFactory(TransactionFactory):
    def __init__(self):
        self.skip_set_auto_commit_on_close = False

    def set_properties(self, properties: Dict[str, str]) -> None:
        super().set_properties(properties)
        self.skip_set_auto_commit_on_close = boolean_value_of(properties.get("skipSetAutoCommitOnClose"), False)

    def new_transaction(
        self, data_source: Any, isolation_level: Optional[str] = None, auto_commit: bool = False
    ) -> Transaction:
        return JdbcTransaction(data_source, isolation_level, auto_commit, self.skip_set_auto_commit_on_close)


class ManagedTransactionFactory(TransactionFactory):
    def __init__(self):
        self.close_connection = True

    def set_properties(self, properties: Dict[str, str]) -> None:
        super().set_properties(properties)
        self.close_connection = boolean_value_of(properties.get("closeConnection"), True)

    def new_transaction(
        self, data_source: Any, isolation_level: Optional[str] = None, auto_commit: bool = False
    ) -> Transaction:
        return ManagedTransaction(data_source, isolation_level, self.close_connection)


class VendorDatabaseIdProvider(DatabaseIdProvider):
    """Maps the data source's product name to a database id.

    Properties map product name fragments to ids; the first fragment contained
    in the product name wins. Without properties the product name itself is
    the id.
    """

    def __init__(self):
        self.properties: Dict[str, str] = {}

    def get_database_id(self, data_source: Any) -> Optional[str]:
        if data_source is None:
            raise ValueError("data_source cannot be None")
        product_name = data_source.database_product_name
        if not self.properties:
            return product_name
        for fragment, database_id in self.properties.items():
            if product_name is not None and fragment in product_name:
                return database_id
        return None


class DefaultObjectFactory(ObjectFactory):
    """Creates instances by calling the type, substituting concrete types for abstract collections."""

    COLLECTION_DEFAULTS = {list: list, dict: dict, set: set, tuple: list}

    def create(self, type_: type, *args: Any, **kwargs: Any) -> Any:
        return self.COLLECTION_DEFAULTS.get(type_, type_)(*args, **kwargs)

    def is_collection(self, type_: type) -> bool:
        return type_ in (list, set, tuple)


class DefaultObjectWrapperFactory(ObjectWrapperFactory):
    def has_wrapper_for(self, obj: Any) -> bool:
        return False

    def get_wrapper_for(self, meta_object: Any, obj: Any) -> Any:
        raise RuntimeError("The DefaultObjectWrapperFactory should never be called to provide an ObjectWrapper.")


@dataclass(frozen=True)
class Reflector:
    """Settable property names of a type, taken from its constructor and annotations."""

    type: type
    property_names: tuple


class DefaultReflectorFactory(ReflectorFactory):
    def __init__(self):
        self.class_cache_enabled = True
        self._cache: Dict[type, Reflector] = {}

    def find_for_class(self, type_: type) -> Reflector:
        if self.class_cache_enabled and type_ in self._cache:
            return self._cache[type_]
        names = list(getattr(type_, "__annotations__", {}))
        try:
            for name in inspect.signature(type_).parameters:
                if name not in names:
                    names.append(name)
        except (TypeError, ValueError):
            pass  # builtins without signatures
        reflector = Reflector(type_, tuple(names))
        if self.class_cache_enabled:
            self._cache[type_] = reflector
        return reflector


class DefaultVFS(VFS):
    """Lists files below a directory on the local file system."""

    def list(self, path: str) -> list[str]:
        found = []
        for directory, _, files in os.walk(path):
            found.extend(os.path.join(directory, name) for name in sorted(files))
        return found


class StdlibLog(Log):
    """Log adapter over the standard library :mod:`logging`."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def is_debug_enabled(self) -> bool:
        return self.logger.isEnabledFor(logging.DEBUG)

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def warn(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str, exc: Optional[BaseException] = None) -> None:
        self.logger.error(message, exc_info=exc)


class NoLoggingLog(Log):
    def __init__(self, name: str):
        pass

    def is_debug_enabled(self) -> bool:
        return False

    def debug(self, message: str) -> None:
        pass

    def warn(self, message: str) -> None:
        pass

    def error(self, message: str, exc: Optional[BaseException] = None) -> None:
        pass
