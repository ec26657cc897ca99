"""Settings section: batch validation against the configuration class, then typed application."""

import logging
from enum import Enum
from typing import Any, Callable, Dict, NamedTuple, Optional, Type

from .components import ComponentResolver
from .configuration import (
    AutoMappingBehavior,
    AutoMappingUnknownColumnBehavior,
    Configuration,
    ExecutorType,
    JdbcType,
    LocalCacheScope,
    ResultSetType,
)
from .document import ConfigNode
from .exceptions import ClassResolutionError, InvalidSettingValueError, UnknownSettingError
from .utils import boolean_value_of, camel_to_snake, import_object, integer_value_of, string_set_value_of

logger = logging.getLogger(__name__)


class Setting(NamedTuple):
    """How one settings key is converted: kind is bool, int, enum, set, str, type or instance."""

    kind: str
    default: Any = None
    enum: Optional[Type[Enum]] = None


SETTINGS: Dict[str, Setting] = {
    "auto_mapping_behavior": Setting("enum", "PARTIAL", AutoMappingBehavior),
    "auto_mapping_unknown_column_behavior": Setting("enum", "NONE", AutoMappingUnknownColumnBehavior),
    "cache_enabled": Setting("bool", True),
    "proxy_factory": Setting("instance"),
    "lazy_loading_enabled": Setting("bool", False),
    "aggressive_lazy_loading": Setting("bool", False),
    "use_column_label": Setting("bool", True),
    "use_generated_keys": Setting("bool", False),
    "default_executor_type": Setting("enum", "SIMPLE", ExecutorType),
    "default_statement_timeout": Setting("int"),
    "default_fetch_size": Setting("int"),
    "default_result_set_type": Setting("enum", None, ResultSetType),
    "map_underscore_to_camel_case": Setting("bool", False),
    "safe_row_bounds_enabled": Setting("bool", False),
    "local_cache_scope": Setting("enum", "SESSION", LocalCacheScope),
    "jdbc_type_for_null": Setting("enum", "OTHER", JdbcType),
    "lazy_load_trigger_methods": Setting("set", "equals,clone,hashCode,toString"),
    "safe_result_handler_enabled": Setting("bool", True),
    "default_scripting_language": Setting("type"),
    "default_enum_type_handler": Setting("type"),
    "call_setters_on_nulls": Setting("bool", False),
    "use_actual_param_name": Setting("bool", True),
    "return_instance_for_empty_row": Setting("bool", False),
    "log_prefix": Setting("str"),
    "configuration_factory": Setting("type"),
    "shrink_whitespaces_in_sql": Setting("bool", False),
    "arg_name_based_constructor_auto_mapping": Setting("bool", False),
    "default_sql_provider_type": Setting("type"),
    "nullable_on_for_each": Setting("bool", False),
}

# Applied before aliases and plugins are processed
EARLY_SETTINGS = ("vfs_impl", "log_impl")


def read_settings(node: Optional[ConfigNode], configuration_cls: Type[Configuration]) -> Dict[str, str]:
    """Read the settings section and validate every key before any is applied.

    Args:
        node: The settings node  # (None yields an empty bag)
        configuration_cls: Class whose settable properties define the known keys

    Returns:
        Settings keyed by snake_case name  # (document order)

    Raises:
        UnknownSettingError: Listing every key with no settable counterpart, valued or not
        DocumentError: If a known key has no value
        InvalidSettingValueError: If one key is declared in both camelCase and snake_case
    """
    if node is None:
        return {}

    # Keys are case sensitive: camelCase or snake_case, starting lowercase
    unknown = [
        key
        for key in node.children_names()
        if not key[:1].islower() or not configuration_cls.has_setter(camel_to_snake(key))
    ]
    if unknown:
        raise UnknownSettingError(unknown)

    settings = {}  # Dict[str, str] (snake_case key -> raw value)
    spelled = {}  # Dict[str, str] (snake_case key -> key as written)
    for key, value in node.children_as_properties().items():
        name = camel_to_snake(key)
        if name in spelled:
            raise InvalidSettingValueError(key, value, f"a single declaration (already set as '{spelled[name]}')")
        spelled[name] = key
        settings[name] = value
    logger.debug("Read %d settings", len(settings))
    return settings


def load_custom_vfs(settings: Dict[str, str], configuration: Configuration) -> None:
    """Install the VFS implementations named by ``vfsImpl`` (comma separated dotted paths).

    Raises:
        ClassResolutionError: If a name cannot be imported
    """
    value = settings.get("vfs_impl")
    if value is None:
        return
    for name in value.split(","):
        name = name.strip()
        if not name:
            continue
        try:
            configuration.vfs_impl = import_object(name)
        except ImportError as e:
            raise ClassResolutionError(name, e) from e


def load_custom_log_impl(settings: Dict[str, str], configuration: Configuration, resolver: ComponentResolver) -> None:
    """Install the log implementation named by ``logImpl`` (alias or dotted path)."""
    configuration.log_impl = resolver.resolve_class(settings.get("log_impl"))


def apply_settings(settings: Dict[str, str], configuration: Configuration, resolver: ComponentResolver) -> None:
    """Apply every known setting, using its default when absent.

    Args:
        settings: Validated settings keyed by snake_case name
        configuration: Receiver of the values
        resolver: Resolves type and instance valued settings

    Raises:
        InvalidSettingValueError: If a value cannot be converted
        ClassResolutionError: If a type valued setting cannot be resolved
    """
    converters: Dict[str, Callable[[str, Optional[str], Setting], Any]] = {
        "bool": _to_bool,
        "int": _to_int,
        "enum": _to_enum,
        "set": lambda key, value, setting: string_set_value_of(value, setting.default),
        "str": lambda key, value, setting: value,
        "type": lambda key, value, setting: resolver.resolve_class(value),
        "instance": lambda key, value, setting: resolver.create_instance(value),
    }
    for key, setting in SETTINGS.items():
        value = converters[setting.kind](key, settings.get(key), setting)
        setattr(configuration, key, value)

    # Settings declared by a configuration subclass are assigned verbatim
    for key, value in settings.items():
        if key not in SETTINGS and key not in EARLY_SETTINGS:
            setattr(configuration, key, value)


def _to_bool(key: str, value: Optional[str], setting: Setting) -> bool:
    try:
        return boolean_value_of(value, setting.default)
    except ValueError:
        raise InvalidSettingValueError(key, value, "true or false") from None


def _to_int(key: str, value: Optional[str], setting: Setting) -> Optional[int]:
    try:
        return integer_value_of(value, setting.default)
    except ValueError:
        raise InvalidSettingValueError(key, value, "an integer") from None


def _to_enum(key: str, value: Optional[str], setting: Setting) -> Optional[Enum]:
    name = setting.default if value is None else value.strip()
    if name is None:
        return None
    try:
        return setting.enum[name]
    except KeyError:
        expected = ", ".join(member.name for member in setting.enum)
        raise InvalidSettingValueError(key, value, f"one of {expected}") from None
