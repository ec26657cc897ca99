"""Custom exceptions for mapconf."""

from typing import Any, Iterable, Optional


class MapConfError(Exception):
    """Base exception for mapconf errors."""

    pass


class DocumentError(MapConfError):
    """Raised when a configuration document cannot be read."""

    pass


class BuilderError(MapConfError):
    """Base exception for failures while assembling a configuration."""

    pass


class ReuseError(BuilderError):
    """Raised when a builder is asked to parse a second time."""

    def __init__(self) -> None:
        super().__init__("Each ConfigBuilder can only be used once.")


class UnknownSettingError(BuilderError):
    """Raised when settings contain keys unknown to the configuration class."""

    def __init__(self, keys: Iterable[str]):
        self.keys = list(keys)
        key_display = ", ".join(self.keys)
        super().__init__(
            f"The setting(s) {key_display} not known. Make sure you spelled them correctly (case sensitive)."
        )


class InvalidSettingValueError(BuilderError):
    """Raised when a known setting carries a value that cannot be converted."""

    def __init__(self, key: str, value: Any, expected: str):
        self.key = key
        self.value = value
        self.expected = expected
        super().__init__(f"Invalid value {value!r} for setting '{key}'. Expected: {expected}")


class AmbiguousPropertySourceError(BuilderError):
    """Raised when a properties section names both a resource and a URL."""

    def __init__(self, resource: str, url: str):
        self.resource = resource
        self.url = url
        super().__init__(
            "The properties element cannot specify both a URL and a resource based property file reference. "
            f"Please specify one or the other (resource={resource!r}, url={url!r})."
        )


class MissingFactoryError(BuilderError):
    """Raised when an environment declaration lacks one of its factories."""

    def __init__(self, kind: str, environment_id: Optional[str] = None):
        self.kind = kind
        self.environment_id = environment_id
        super().__init__(f"Environment declaration '{environment_id}' requires a {kind}.")


class MissingEnvironmentIdError(BuilderError):
    """Raised when no environment id is available for selection."""

    def __init__(self, message: str = "No environment specified."):
        super().__init__(message)


class MappingReferenceConflictError(BuilderError):
    """Raised when a mapper declares zero or several of resource, url and class."""

    def __init__(self, attributes: dict[str, Optional[str]]):
        self.attributes = attributes
        declared = ", ".join(f"{key}={value!r}" for key, value in attributes.items() if value is not None)
        super().__init__(
            "A mapper element may only specify a url, resource or class, but not more than one. "
            f"Declared: {declared or 'nothing'}"
        )


class MapperRegistrationError(BuilderError):
    """Raised when a mapper type is registered twice."""

    pass


class ClassResolutionError(BuilderError):
    """Raised when a type name or alias cannot be resolved."""

    def __init__(self, name: str, cause: Optional[BaseException] = None):
        self.name = name
        message = f"Error resolving class '{name}'."
        if cause is not None:
            message += f" Cause: {cause}"
        super().__init__(message)


class InstantiationError(BuilderError):
    """Raised when a resolved type cannot be constructed without arguments."""

    def __init__(self, cls: Any, cause: BaseException):
        self.cls = cls
        name = f"{getattr(cls, '__module__', '')}.{getattr(cls, '__qualname__', cls)}".lstrip(".")
        super().__init__(f"Error creating instance of {name}. Cause: {cause}")


class ConfigurationParseError(BuilderError):
    """Raised by the builder when a section fails; wraps the original cause."""

    def __init__(self, section: str, cause: BaseException, resource: Optional[str] = None):
        """Initialize configuration parse error.

        Args:
            section: Name of the section being processed
            cause: The underlying failure
            resource: Resource being read when the failure happened, if any
        """
        self.section = section
        self.cause = cause
        self.resource = resource
        message = f"Error parsing configuration section '{section}'"
        if resource:
            message += f" (resource: {resource})"
        super().__init__(f"{message}. Cause: {type(cause).__name__}: {cause}")


class MapperParseError(BuilderError):
    """Raised when a mapped-statement source cannot be parsed; carries the source identifier."""

    def __init__(self, resource: str, cause: BaseException):
        self.resource = resource
        self.cause = cause
        super().__init__(f"Error parsing mapper resource '{resource}'. Cause: {type(cause).__name__}: {cause}")
