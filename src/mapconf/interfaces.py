"""Capability interfaces for pluggable components.

Every component installed by the builder is constructed without arguments.
Components that subclass :class:`Configurable` (or simply define
``set_properties``) then receive the properties declared for them.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Dict, Optional, Sequence


class Configurable:
    """Mixin for components that accept declared properties."""

    def set_properties(self, properties: Dict[str, str]) -> None:
        """Receive the properties declared in the configuration document.

        Args:
            properties: Ordered key/value pairs  # (empty when none were declared)
        """
        self.properties = dict(properties)


class Interceptor(Configurable, ABC):
    """Plugin that wraps engine components."""

    @abstractmethod
    def intercept(self, invocation: Any) -> Any:
        """Intercept a call on a wrapped component."""

    def plugin(self, target: Any) -> Any:
        """Wrap a target; the default returns it unchanged."""
        return target


class ObjectFactory(Configurable, ABC):
    """Creates result objects."""

    @abstractmethod
    def create(self, type_: type, *args: Any, **kwargs: Any) -> Any:
        """Create an instance of a type."""

    def is_collection(self, type_: type) -> bool:
        return False


class ObjectWrapperFactory(ABC):
    @abstractmethod
    def has_wrapper_for(self, obj: Any) -> bool: ...

    @abstractmethod
    def get_wrapper_for(self, meta_object: Any, obj: Any) -> Any: ...


class ReflectorFactory(ABC):
    @abstractmethod
    def find_for_class(self, type_: type) -> Any: ...


class Transaction(ABC):
    @abstractmethod
    def get_connection(self) -> Any: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...

    @abstractmethod
    def close(self) -> None: ...


class TransactionFactory(Configurable, ABC):
    """Creates transactions for an environment."""

    @abstractmethod
    def new_transaction(
        self, data_source: Any, isolation_level: Optional[str] = None, auto_commit: bool = False
    ) -> Transaction:
        """Open a transaction over a data source."""


class DataSourceFactory(Configurable, ABC):
    """Builds the data source of an environment from its properties."""

    @abstractmethod
    def get_data_source(self) -> Any:
        """Return the configured data source."""


class DatabaseIdProvider(Configurable, ABC):
    """Derives a database id from a live data source."""

    @abstractmethod
    def get_database_id(self, data_source: Any) -> Optional[str]:
        """Return the id used to select vendor specific statements."""


class TypeHandler(ABC):
    """Converts values between Python and the database.

    Subclasses may declare the types they handle with ``mapped_types`` and
    ``mapped_jdbc_types``; those declarations are used when the handler is
    registered without explicit types.
    """

    mapped_types: ClassVar[Sequence[type]] = ()
    mapped_jdbc_types: ClassVar[Sequence[Any]] = ()
    include_null_jdbc_type: ClassVar[bool] = False

    @abstractmethod
    def set_parameter(self, cursor_params: list, index: int, value: Any, jdbc_type: Any = None) -> None: ...

    @abstractmethod
    def get_result(self, row: Any, column: Any) -> Any: ...


class Mapper:
    """Marker base class for mapper types discovered by package scanning."""


class VFS(ABC):
    """Lists resources below a path."""

    @abstractmethod
    def list(self, path: str) -> list[str]: ...


class Log(ABC):
    """Logging adapter selected by the ``logImpl`` setting."""

    @abstractmethod
    def __init__(self, name: str): ...

    @abstractmethod
    def is_debug_enabled(self) -> bool: ...

    @abstractmethod
    def debug(self, message: str) -> None: ...

    @abstractmethod
    def warn(self, message: str) -> None: ...

    @abstractmethod
    def error(self, message: str, exc: Optional[BaseException] = None) -> None: ...
