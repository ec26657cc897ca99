"""Placeholder interpolation for configuration attribute values."""

import re
from typing import Mapping, Optional

ENABLE_DEFAULT_VALUE = "mapconf.placeholder.enable-default-value"
DEFAULT_VALUE_SEPARATOR = "mapconf.placeholder.default-value-separator"


class PlaceholderResolver:
    """Expands ``${key}`` placeholders from a variables map."""

    PATTERN = re.compile(r"(\\)?\$\{([^}]*)\}")

    def __init__(self, variables: Optional[Mapping[str, str]] = None):
        """Initialize placeholder resolver.

        Args:
            variables: Variables map  # (shared PropertyBag, read at every call)

        Note:
            Unknown keys are left verbatim, and ``\\${...}`` escapes a placeholder.
        """
        self.variables = variables if variables is not None else {}

    def resolve(self, value: Optional[str]) -> Optional[str]:
        """Resolve all placeholders in a string value.

        Args:
            value: Raw attribute value  # (may be None)

        Returns:
            Value with every known placeholder substituted
        """
        if value is None or "${" not in value:
            return value
        return self.PATTERN.sub(self._replace, value)

    def _replace(self, match: re.Match) -> str:
        escaped, content = match.group(1), match.group(2)
        if escaped:
            return "${" + content + "}"

        key, default = self._split_default(content)
        if key in self.variables:
            return str(self.variables[key])
        if default is not None:
            return default
        return match.group(0)

    def _split_default(self, content: str) -> tuple[str, Optional[str]]:
        """Split ``key:default`` when default values are enabled."""
        if str(self.variables.get(ENABLE_DEFAULT_VALUE, "false")).lower() != "true":
            return content, None
        separator = self.variables.get(DEFAULT_VALUE_SEPARATOR, ":")
        if separator in content:
            key, default = content.split(separator, 1)
            return key, default
        return content, None
