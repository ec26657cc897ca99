"""Mappers section: mapped-statement sources by resource, URL, type or package."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import IO, Any, Dict, Optional, Type

from .configuration import Configuration, MappedStatement
from .document import ConfigNode
from .exceptions import BuilderError, ClassResolutionError, MapperParseError, MappingReferenceConflictError
from .resources import Resources
from .utils import import_object, load_yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MapperReference:
    """Exactly one of resource, url or class_name."""

    resource: Optional[str] = None
    url: Optional[str] = None
    class_name: Optional[str] = None

    @classmethod
    def from_node(cls, node: ConfigNode) -> "MapperReference":
        """Read a mapper declaration.

        Raises:
            MappingReferenceConflictError: If zero or several of resource, url and class are set
        """
        attributes = {
            "resource": node.get_string_attribute("resource"),
            "url": node.get_string_attribute("url"),
            "class": node.get_string_attribute("class"),
        }
        if sum(value is not None for value in attributes.values()) != 1:
            raise MappingReferenceConflictError(attributes)
        return cls(attributes["resource"], attributes["url"], attributes["class"])


class MapperDocumentParser:
    """Parses a YAML mapper document into mapped statements.

    Document shape::

        namespace: app.mappers.UserMapper
        sql:
          columns: id, name
        statements:
          selectAll: SELECT <include refid="columns"/> FROM users
          insertUser:
            kind: insert
            sql: INSERT INTO users (name) VALUES (#{name})

    A namespace naming an importable type is also registered as a mapper.
    """

    INCLUDE = re.compile(r"""<include\s+refid=["']([^"']+)["']\s*/>""")
    KINDS = ("select", "insert", "update", "delete")

    def __init__(self, stream: IO[bytes], configuration: Configuration, resource: str, sql_fragments: Dict[str, Any]):
        """Initialize mapper document parser.

        Args:
            stream: Open mapper document stream, owned by the caller
            configuration: Receiver of the statements
            resource: Source identifier of the document
            sql_fragments: Fragment registry shared by all mapper documents
        """
        self.stream = stream
        self.configuration = configuration
        self.resource = resource
        self.sql_fragments = sql_fragments

    def parse(self) -> None:
        """Register the document's fragments and statements (once per resource).

        Raises:
            BuilderError: If the document is malformed
        """
        if self.configuration.is_resource_loaded(self.resource):
            logger.debug("Mapper resource %s already loaded", self.resource)
            return

        data = load_yaml(self.stream.read().decode("utf-8"))
        if not isinstance(data, dict):
            raise BuilderError("Mapper document must contain a YAML mapping at the top level.")
        namespace = data.get("namespace")
        if not namespace:
            raise BuilderError("Mapper's namespace cannot be empty")

        for fragment_id, text in (data.get("sql") or {}).items():
            self.sql_fragments[f"{namespace}.{fragment_id}"] = str(text)

        for statement_id, declaration in (data.get("statements") or {}).items():
            self.configuration.add_mapped_statement(self._statement(namespace, str(statement_id), declaration))

        self.configuration.add_loaded_resource(self.resource)
        self._bind_mapper_for_namespace(namespace)
        logger.debug("Parsed mapper resource %s (namespace %s)", self.resource, namespace)

    def _statement(self, namespace: str, statement_id: str, declaration: Any) -> MappedStatement:
        if isinstance(declaration, str):
            declaration = {"sql": declaration}
        if not isinstance(declaration, dict) or not declaration.get("sql"):
            raise BuilderError(f"Statement '{statement_id}' must declare sql text.")

        kind = str(declaration.get("kind", "select")).lower()
        if kind not in self.KINDS:
            raise BuilderError(f"Statement '{statement_id}' has unknown kind '{kind}'. Expected one of {self.KINDS}")

        sql = self.INCLUDE.sub(lambda m: self._fragment(namespace, m.group(1)), str(declaration["sql"]))
        return MappedStatement(f"{namespace}.{statement_id}", sql, kind, self.resource)

    def _fragment(self, namespace: str, refid: str) -> str:
        key = refid if "." in refid else f"{namespace}.{refid}"
        if key not in self.sql_fragments:
            raise BuilderError(f"Could not find SQL statement to include with refid '{key}'")
        return self.sql_fragments[key]

    def _bind_mapper_for_namespace(self, namespace: str) -> None:
        try:
            mapper_type = import_object(namespace)
        except ImportError:
            return  # namespaces need not name a type
        if isinstance(mapper_type, type) and not self.configuration.has_mapper(mapper_type):
            self.configuration.add_loaded_resource(f"namespace:{namespace}")
            self.configuration.add_mapper(mapper_type)


def mappers_section(
    node: Optional[ConfigNode],
    configuration: Configuration,
    resources: Resources,
    parser_cls: Type[MapperDocumentParser] = MapperDocumentParser,
) -> None:
    """Resolve every mapper reference, in document order.

    Raises:
        MappingReferenceConflictError: If a mapper declares zero or several sources
        MapperParseError: If a resource or URL document fails to parse
        ClassResolutionError: If a mapper class cannot be imported
    """
    if node is None:
        return
    for child in node.get_children():
        if child.name == "package":
            configuration.add_mappers(child.get_string_attribute("name"))
            continue

        reference = MapperReference.from_node(child)
        if reference.resource is not None:
            _parse_source(lambda: resources.get_resource_as_stream(reference.resource), reference.resource,
                          configuration, parser_cls)
        elif reference.url is not None:
            _parse_source(lambda: resources.get_url_as_stream(reference.url), reference.url,
                          configuration, parser_cls)
        else:
            try:
                mapper_type = import_object(reference.class_name)
            except ImportError as e:
                raise ClassResolutionError(reference.class_name, e) from e
            configuration.add_mapper(mapper_type)


def _parse_source(
    open_stream, source: str, configuration: Configuration, parser_cls: Type[MapperDocumentParser]
) -> None:
    """Open a mapper source, hand it to the sub-parser and release it on every exit path."""
    try:
        with open_stream() as stream:
            parser_cls(stream, configuration, source, configuration.sql_fragments).parse()
    except MapperParseError:
        raise
    except Exception as e:
        raise MapperParseError(source, e) from e
