"""Registries populated while assembling a configuration."""

import datetime
import decimal
import inspect
import logging
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import BuilderError, MapperRegistrationError
from .interfaces import Mapper, TypeHandler
from .utils import import_object, iter_package_classes

logger = logging.getLogger(__name__)


class TypeAliasRegistry:
    """Case-insensitive map of short names to types."""

    BUILTIN_ALIASES = {
        "string": str,
        "str": str,
        "bytes": bytes,
        "byte[]": bytes,
        "int": int,
        "integer": int,
        "long": int,
        "short": int,
        "float": float,
        "double": float,
        "bool": bool,
        "boolean": bool,
        "decimal": decimal.Decimal,
        "bigdecimal": decimal.Decimal,
        "date": datetime.date,
        "datetime": datetime.datetime,
        "time": datetime.time,
        "object": object,
        "list": list,
        "collection": list,
        "arraylist": list,
        "dict": dict,
        "map": dict,
        "hashmap": dict,
        "set": set,
        "tuple": tuple,
    }

    def __init__(self):
        self._aliases: Dict[str, type] = dict(self.BUILTIN_ALIASES)

    def resolve_alias(self, name: Optional[str]) -> Optional[Any]:
        """Resolve an alias or a dotted type name.

        Args:
            name: Alias (any case) or importable dotted path

        Returns:
            Resolved type, or None for a None name

        Raises:
            ImportError: If the name is neither a registered alias nor importable
        """
        if name is None:
            return None
        key = name.lower()
        if key in self._aliases:
            return self._aliases[key]
        return import_object(name)

    def register_alias(self, alias_or_type: Any, cls: Optional[type] = None) -> None:
        """Register an alias.

        Called with a single type, the alias is the type's ``__alias__`` attribute
        when it defines one, otherwise its simple name.

        Raises:
            BuilderError: If the alias is already bound to a different type
        """
        if cls is None:
            cls = alias_or_type
            alias = cls.__dict__.get("__alias__") or cls.__name__
        else:
            alias = alias_or_type
        if alias is None:
            raise BuilderError("The parameter alias cannot be null")

        key = alias.lower()
        existing = self._aliases.get(key)
        if existing is not None and existing is not cls:
            raise BuilderError(
                f"The alias '{alias}' is already mapped to the value '{existing.__module__}.{existing.__qualname__}'."
            )
        self._aliases[key] = cls
        logger.debug("Registered type alias %s -> %s.%s", alias, cls.__module__, cls.__qualname__)

    def register_aliases(self, package: str, super_type: type = object) -> None:
        """Register every public class defined in a package under its default alias."""
        for cls in iter_package_classes(package):
            if issubclass(cls, super_type) and not inspect.isabstract(cls):
                self.register_alias(cls)

    @property
    def aliases(self) -> Dict[str, type]:
        return dict(self._aliases)


class TypeHandlerRegistry:
    """Type handlers keyed by (python type, jdbc type)."""

    def __init__(self):
        self._handlers: Dict[Tuple[Optional[type], Any], TypeHandler] = {}

    def register_for_java_type(self, java_type: type, handler_cls: type) -> None:
        """Register a handler for a python type, using the handler's own jdbc type declarations."""
        handler = self.get_instance(java_type, handler_cls)
        jdbc_types = list(getattr(handler_cls, "mapped_jdbc_types", ()))
        if jdbc_types:
            for jdbc_type in jdbc_types:
                self._put(java_type, jdbc_type, handler)
            if getattr(handler_cls, "include_null_jdbc_type", False):
                self._put(java_type, None, handler)
        else:
            self._put(java_type, None, handler)

    def register_for_types(self, java_type: type, jdbc_type: Any, handler_cls: type) -> None:
        """Register a handler for an explicit (python type, jdbc type) pair."""
        self._put(java_type, jdbc_type, self.get_instance(java_type, handler_cls))

    def register_handler(self, handler_cls: type) -> None:
        """Register a self-describing handler from its ``mapped_types`` declaration."""
        mapped_types = list(getattr(handler_cls, "mapped_types", ()))
        if mapped_types:
            for java_type in mapped_types:
                self.register_for_java_type(java_type, handler_cls)
        else:
            handler = self.get_instance(None, handler_cls)
            self._put(None, None, handler)

    def register_package(self, package: str) -> None:
        """Register every concrete TypeHandler subclass defined in a package."""
        for handler_cls in iter_package_classes(package, TypeHandler):
            if not inspect.isabstract(handler_cls):
                self.register_handler(handler_cls)

    def get_handler(self, java_type: Optional[type], jdbc_type: Any = None) -> Optional[TypeHandler]:
        handler = self._handlers.get((java_type, jdbc_type))
        if handler is None and jdbc_type is not None:
            handler = self._handlers.get((java_type, None))
        return handler

    def has_handler(self, java_type: Optional[type], jdbc_type: Any = None) -> bool:
        return self.get_handler(java_type, jdbc_type) is not None

    def get_instance(self, java_type: Optional[type], handler_cls: type) -> TypeHandler:
        """Construct a handler, passing the python type when the constructor takes one.

        Raises:
            BuilderError: If the handler cannot be constructed
        """
        try:
            if java_type is not None and _takes_one_argument(handler_cls):
                return handler_cls(java_type)
            return handler_cls()
        except Exception as e:
            raise BuilderError(f"Unable to find a usable constructor for {handler_cls.__qualname__}. Cause: {e}") from e

    def _put(self, java_type: Optional[type], jdbc_type: Any, handler: TypeHandler) -> None:
        self._handlers[(java_type, jdbc_type)] = handler
        logger.debug("Registered type handler %s for (%s, %s)", type(handler).__qualname__, java_type, jdbc_type)

    @property
    def handlers(self) -> Dict[Tuple[Optional[type], Any], TypeHandler]:
        return dict(self._handlers)


class MapperRegistry:
    """Known mapper types."""

    def __init__(self):
        self._mappers: Dict[type, Any] = {}

    def add_mapper(self, mapper_type: type) -> None:
        """Register a mapper type.

        Raises:
            MapperRegistrationError: If the type is already registered
        """
        if mapper_type in self._mappers:
            raise MapperRegistrationError(f"Type {mapper_type.__qualname__} is already known to the MapperRegistry.")
        self._mappers[mapper_type] = mapper_type
        logger.debug("Registered mapper %s.%s", mapper_type.__module__, mapper_type.__qualname__)

    def add_mappers(self, package: str, super_type: type = Mapper) -> None:
        """Register every Mapper subclass defined in a package."""
        for mapper_type in iter_package_classes(package, super_type):
            self.add_mapper(mapper_type)

    def has_mapper(self, mapper_type: type) -> bool:
        return mapper_type in self._mappers

    @property
    def mappers(self) -> List[type]:
        return list(self._mappers)


class InterceptorChain:
    """Interceptors in registration order."""

    def __init__(self):
        self._interceptors: List[Any] = []

    def add_interceptor(self, interceptor: Any) -> None:
        self._interceptors.append(interceptor)

    def plugin_all(self, target: Any) -> Any:
        """Let every interceptor wrap the target, in registration order."""
        for interceptor in self._interceptors:
            target = interceptor.plugin(target)
        return target

    @property
    def interceptors(self) -> List[Any]:
        return list(self._interceptors)


def _takes_one_argument(cls: type) -> bool:
    try:
        parameters = [
            p
            for p in inspect.signature(cls).parameters.values()
            if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty
        ]
    except (TypeError, ValueError):
        return False
    return len(parameters) == 1
