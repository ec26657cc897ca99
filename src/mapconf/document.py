"""Configuration document model.

A configuration document is a tree of named nodes carrying string attributes
and ordered children. Documents are read from YAML or XML; both produce the
same node tree, rooted at a ``configuration`` node.

YAML mapping rules:

* a scalar value becomes an attribute of the enclosing node (null drops it)
* a mapping value becomes one child node named after its key
* a list of mappings becomes one child per item, all named after the key
* a list of single-key mappings whose values are mappings becomes one node
  named after the key, with the items as ordered, differently named children
  (``mappers: [{mapper: {...}}, {package: {...}}]``)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Tuple, Union

import yaml
from lxml import etree

from .exceptions import DocumentError
from .interpolation import PlaceholderResolver
from .utils import load_yaml, scalar_to_string

logger = logging.getLogger(__name__)

ROOT_NAME = "configuration"


@dataclass(frozen=True, eq=False)
class ConfigNode:
    """Read-only configuration node."""

    name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    children: Tuple["ConfigNode", ...] = ()
    variables: Dict[str, str] = field(default_factory=dict, repr=False)

    def get_string_attribute(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get an attribute with ``${...}`` placeholders expanded.

        Args:
            name: Attribute name
            default: Value returned when the attribute is absent

        Returns:
            Expanded attribute value or the default
        """
        value = self.attributes.get(name)
        if value is None:
            return default
        return PlaceholderResolver(self.variables).resolve(value)

    def get_children(self) -> List["ConfigNode"]:
        """Return the ordered child nodes."""
        return list(self.children)

    def eval_node(self, path: str) -> Optional["ConfigNode"]:
        """Find the first node along a slash separated path of child names.

        Args:
            path: Path like "environments/environment"

        Returns:
            First matching node, or None
        """
        current: Optional[ConfigNode] = self
        for part in path.strip("/").split("/"):
            if current is None:
                return None
            current = next((child for child in current.children if child.name == part), None)
        return current

    def children_as_properties(self) -> Dict[str, str]:
        """Collect ``name``/``value`` pairs declared by child nodes, in document order.

        Raises:
            DocumentError: If a child lacks its name or its value
        """
        properties = {}  # Dict[str, str] (ordered PropertyBag)
        for child in self.children:
            name = child.get_string_attribute("name")
            if name is None:
                raise DocumentError(f"Node '{self.name}.{child.name}' must declare a name.")
            value = child.get_string_attribute("value")
            if value is None:
                raise DocumentError(f"Node '{self.name}.{child.name}' named '{name}' must declare a value.")
            properties[name] = value
        return properties

    def children_names(self) -> List[str]:
        """Return the ``name`` attribute of every child that declares one."""
        names = [child.get_string_attribute("name") for child in self.children]
        return [name for name in names if name is not None]


class ConfigDocument:
    """A configuration node tree plus the variables shared by all of its nodes."""

    def __init__(self, root: ConfigNode, variables: Dict[str, str]):
        """Initialize configuration document.

        Args:
            root: Root node of the tree  # (named "configuration")
            variables: Shared variables map referenced by every node
        """
        self.root = root
        self.variables = variables

    def set_variables(self, variables: Optional[Dict[str, str]]) -> None:
        """Replace the shared variables in place so every node sees them."""
        self.variables.clear()
        if variables:
            self.variables.update(variables)

    def eval_node(self, path: str) -> ConfigNode:
        """Evaluate an absolute path from the document root.

        Raises:
            DocumentError: If the path does not exist
        """
        parts = path.strip("/").split("/")
        if parts[0] != self.root.name:
            raise DocumentError(f"Document has no '{parts[0]}' root element (found '{self.root.name}')")
        node = self.root if len(parts) == 1 else self.root.eval_node("/".join(parts[1:]))
        if node is None:
            raise DocumentError(f"Document has no node at '{path}'")
        return node

    @classmethod
    def load(cls, path: Union[str, Path], variables: Optional[Dict[str, str]] = None) -> "ConfigDocument":
        """Load a document from a file, choosing the format by suffix.

        Args:
            path: Path to a .yaml/.yml or .xml file
            variables: Initial variables

        Returns:
            Loaded document
        """
        path = Path(path)
        suffix = path.suffix.lower()
        logger.debug("Loading configuration document %s", path)
        if suffix in (".yaml", ".yml"):
            with open(path, "r", encoding="utf-8") as f:
                return cls.from_yaml(f, variables)
        if suffix == ".xml":
            with open(path, "rb") as f:
                return cls.from_xml(f, variables)
        raise DocumentError(f"Unsupported configuration document format: {path.suffix}")

    @classmethod
    def from_yaml(cls, source: Union[str, IO[Any]], variables: Optional[Dict[str, str]] = None) -> "ConfigDocument":
        """Build a document from YAML text or stream.

        Raises:
            DocumentError: If the YAML is malformed or has no top-level "configuration" mapping
        """
        try:
            data = load_yaml(source)
        except yaml.YAMLError as e:
            raise DocumentError(f"Malformed YAML configuration document: {e}") from e

        if not isinstance(data, dict) or ROOT_NAME not in data:
            raise DocumentError(f"Configuration document must contain a top-level '{ROOT_NAME}' mapping.")

        shared = dict(variables or {})
        root = _yaml_node(ROOT_NAME, data[ROOT_NAME], shared)
        return cls(root, shared)

    @classmethod
    def from_xml(
        cls, source: Union[str, bytes, IO[Any]], variables: Optional[Dict[str, str]] = None
    ) -> "ConfigDocument":
        """Build a document from XML text, bytes or stream.

        Raises:
            DocumentError: If the XML is malformed or its root is not "configuration"
        """
        parser = etree.XMLParser(
            remove_blank_text=True,
            remove_comments=True,
            resolve_entities=False,
            load_dtd=False,
            no_network=True,
        )
        try:
            if isinstance(source, str):
                element = etree.fromstring(source.encode("utf-8"), parser)
            elif isinstance(source, bytes):
                element = etree.fromstring(source, parser)
            else:
                element = etree.parse(source, parser).getroot()
        except etree.XMLSyntaxError as e:
            raise DocumentError(f"Malformed XML configuration document: {e}") from e

        if element.tag != ROOT_NAME:
            raise DocumentError(f"Configuration document root must be '{ROOT_NAME}', found '{element.tag}'.")

        shared = dict(variables or {})
        return cls(_xml_node(element, shared), shared)


def _yaml_node(name: str, data: Any, variables: Dict[str, str]) -> ConfigNode:
    """Convert YAML data under a key into a node."""
    if data is None:
        return ConfigNode(name, {}, (), variables)

    if isinstance(data, list):
        if not _is_ordered_children(data):
            raise DocumentError(f"Node '{name}' must be a mapping or a list of single-key mappings.")
        children = tuple(_yaml_node(key, value, variables) for item in data for key, value in item.items())
        return ConfigNode(name, {}, children, variables)

    if not isinstance(data, dict):
        raise DocumentError(f"Node '{name}' must be a mapping, got {type(data).__name__}.")

    attributes = {}  # Dict[str, str] (scalar entries)
    children = []  # List[ConfigNode] (nested entries, in order)
    for key, value in data.items():
        key = str(key)
        if isinstance(value, dict):
            children.append(_yaml_node(key, value, variables))
        elif isinstance(value, list):
            if _is_ordered_children(value):
                children.append(_yaml_node(key, value, variables))
            else:
                for item in value:
                    if not isinstance(item, dict):
                        raise DocumentError(f"Items of '{name}.{key}' must be mappings, got {type(item).__name__}.")
                    children.append(_yaml_node(key, item, variables))
        elif value is not None:
            attributes[key] = scalar_to_string(value)

    return ConfigNode(name, attributes, tuple(children), variables)


def _is_ordered_children(items: list) -> bool:
    """Check whether a list holds single-key mappings whose values are mappings."""
    return bool(items) and all(
        isinstance(item, dict) and len(item) == 1 and isinstance(next(iter(item.values())), dict)
        for item in items
    )


def _xml_node(element: Any, variables: Dict[str, str]) -> ConfigNode:
    """Convert an lxml element into a node, skipping comments and processing instructions."""
    children = tuple(_xml_node(child, variables) for child in element if isinstance(child.tag, str))
    return ConfigNode(element.tag, dict(element.attrib), children, variables)
