"""Utility functions for mapconf."""

import builtins
import importlib
import inspect
import pkgutil
import re
from typing import Any, Callable, Iterator, Optional, Type

import yaml

OBJECT_TYPE = Callable | Type[Any]


class _ConfigLoader(yaml.SafeLoader):
    """Safe YAML loader that reads scientific notation as floats."""


_ConfigLoader.add_implicit_resolver(
    tag="tag:yaml.org,2002:float",
    regexp=re.compile(r"-? [1-9] ( \. [0-9]* [1-9] )? ( e [-+] [1-9] [0-9]* )?", re.X),
    first=list("-+0123456789."),
)


def load_yaml(stream: Any) -> Any:
    """Load YAML content from a stream.

    Args:
        stream: Stream to read YAML from  # (file-like object or string)
    Returns:
        Parsed YAML content  # (nested dict/list structure)
    """
    return yaml.load(stream, Loader=_ConfigLoader)


def import_object(path: str) -> OBJECT_TYPE:
    """Import an object by its module path.

    Args:
        path: Import path like 'module.submodule.ClassName' or 'module.ClassName.Inner'

    Returns:
        Imported object  # (class, function, or other importable object)

    Raises:
        ImportError: If object cannot be imported
    """
    # Handle simple names without dots (built-in objects)
    if "." not in path:
        try:
            return getattr(builtins, path)
        except AttributeError:
            raise ImportError(f"Cannot import {path}") from None

    # Try to import progressively from longest to shortest module path
    parts = path.split(".")

    for i in range(len(parts) - 1, 0, -1):
        module_path = ".".join(parts[:i])
        remaining_parts = parts[i:]

        try:
            module = importlib.import_module(module_path)

            # Navigate through the remaining parts (classes, nested classes, etc.)
            obj = module
            for part in remaining_parts:
                obj = getattr(obj, part)

            return obj
        except (ImportError, AttributeError):
            # Try shorter module path
            continue

    raise ImportError(f"Cannot import {path}")


def iter_package_classes(package: str, super_type: Optional[type] = None) -> Iterator[type]:
    """Yield the public classes defined in every module of a package.

    Args:
        package: Dotted package name to scan
        super_type: Only yield subclasses of this type (the type itself excluded)

    Yields:
        Classes in module order, each class once
    """
    root = importlib.import_module(package)
    modules = [root]
    if hasattr(root, "__path__"):
        for info in pkgutil.walk_packages(root.__path__, prefix=f"{package}."):
            modules.append(importlib.import_module(info.name))

    seen = set()
    for module in modules:
        for name, cls in inspect.getmembers(module, inspect.isclass):
            # Only classes defined in the scanned package, not re-exports
            if cls.__module__ != module.__name__ or name.startswith("_") or cls in seen:
                continue
            if super_type is not None and (cls is super_type or not issubclass(cls, super_type)):
                continue
            seen.add(cls)
            yield cls


def camel_to_snake(name: str) -> str:
    """Convert a camelCase key to snake_case (snake_case keys pass through)."""
    return re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", name).lower()


def boolean_value_of(value: Optional[str], default: bool) -> bool:
    """Parse a boolean literal, returning the default when the value is absent.

    Raises:
        ValueError: If the value is not 'true' or 'false' (any case)
    """
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise ValueError(f"not a boolean literal: {value!r}")


def integer_value_of(value: Optional[str], default: Optional[int]) -> Optional[int]:
    """Parse an integer, returning the default when the value is absent."""
    if value is None:
        return default
    return int(value.strip())


def string_set_value_of(value: Optional[str], default: str) -> set[str]:
    """Split a comma separated value into a set of stripped names."""
    value = default if value is None else value
    return {item.strip() for item in value.split(",") if item.strip()}


def scalar_to_string(value: Any) -> Optional[str]:
    """Render a YAML scalar the way it would read as an XML attribute."""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
