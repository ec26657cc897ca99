"""mapconf - configuration assembly for a data-mapping engine.

Reads a YAML or XML configuration document and builds a fully wired
Configuration: environments, pluggable factories, interceptors, type
handlers and mapped-statement sources.
"""
# ruff: noqa: F401

from .builder import ConfigBuilder
from .configuration import Configuration, Environment, MappedStatement
from .document import ConfigDocument, ConfigNode
from .exceptions import (
    BuilderError,
    ConfigurationParseError,
    MapConfError,
    ReuseError,
)
from .resources import Resources

__version__ = "0.1.0"
