"""Test cases for property resolution and placeholder expansion."""

from pathlib import Path

import pytest
import requests

from mapconf import ConfigurationParseError
from mapconf.document import ConfigDocument
from mapconf.exceptions import AmbiguousPropertySourceError, DocumentError
from mapconf.interpolation import DEFAULT_VALUE_SEPARATOR, ENABLE_DEFAULT_VALUE, PlaceholderResolver
from mapconf.properties import PropertyResolver
from mapconf.resources import Resources, parse_properties_text
from tests.conftest import write_text_file

PROPERTIES_DOCUMENT = """
configuration:
  properties:
    {source}
    property:
      - {{name: a, value: declared}}
      - {{name: b, value: declared}}
      - {{name: c, value: declared}}
"""


def properties_node(source: str = ""):
    document = ConfigDocument.from_yaml(PROPERTIES_DOCUMENT.format(source=source))
    return document.eval_node("/configuration/properties")


def test_precedence_declared_then_source_then_inherited(temp_dir: Path):
    """Test property layering.

    Given declared pairs a, b, c, a file overriding b and c, and an inherited c
    When the properties are resolved
    Then a comes from the declaration, b from the file and c from the inherited variables
    """
    write_text_file(temp_dir / "app.properties", "b=file\nc=file\n")

    resolver = PropertyResolver(Resources([temp_dir]))
    properties = resolver.resolve(properties_node("resource: app.properties"), {"c": "inherited"})

    assert properties == {"a": "declared", "b": "file", "c": "inherited"}


def test_url_source(temp_dir: Path):
    path = write_text_file(temp_dir / "remote.properties", "b: remote\n")

    properties = PropertyResolver().resolve(properties_node(f"url: {path.as_uri()}"))

    assert properties == {"a": "declared", "b": "remote", "c": "declared"}


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


def test_http_url_source_is_fetched_with_a_timeout(monkeypatch):
    """Test fetching an HTTP property source.

    Given a properties section referencing an http URL
    When the properties are resolved
    Then the source is fetched with requests under the loader's timeout
    """
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse(b"b=remote\n")

    monkeypatch.setattr(requests, "get", fake_get)

    resolver = PropertyResolver(Resources(timeout=2.5))
    properties = resolver.resolve(properties_node("url: http://config.example/app.properties"))

    assert properties == {"a": "declared", "b": "remote", "c": "declared"}
    assert calls == [("http://config.example/app.properties", 2.5)]


def test_http_error_status_is_raised(monkeypatch):
    monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse(b"", status_code=404))

    with pytest.raises(requests.HTTPError, match="404"):
        PropertyResolver().resolve(properties_node("url: https://config.example/missing.properties"))


def test_unsupported_url_scheme():
    with pytest.raises(ValueError, match="Unsupported URL scheme 'ftp'"):
        Resources().get_url_as_stream("ftp://config.example/app.properties")


def test_yaml_property_file(temp_dir: Path):
    write_text_file(temp_dir / "app.yaml", "b: 42\nc: true\n")

    properties = PropertyResolver(Resources([temp_dir])).resolve(properties_node("resource: app.yaml"))

    assert properties == {"a": "declared", "b": "42", "c": "true"}


def test_resource_and_url_together_are_rejected():
    """Test that a properties section may name only one external source."""
    with pytest.raises(AmbiguousPropertySourceError, match="cannot specify both"):
        PropertyResolver().resolve(properties_node("resource: a.properties\n    url: file:///b.properties"))


def test_ambiguous_source_aborts_the_build(build):
    with pytest.raises(ConfigurationParseError) as exc_info:
        build(
            """
            configuration:
              properties: {resource: a.properties, url: "file:///b.properties"}
            """
        )

    assert exc_info.value.section == "properties"
    assert isinstance(exc_info.value.__cause__, AmbiguousPropertySourceError)


def test_absent_section_resolves_to_none():
    assert PropertyResolver().resolve(None, {"a": "1"}) is None


def test_missing_property_resource(build):
    with pytest.raises(ConfigurationParseError) as exc_info:
        build("configuration: {properties: {resource: missing.properties}}")

    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


def test_seed_variables_survive_without_properties_section(build):
    configuration = build(
        """
        configuration:
          environments:
            default: "${env}"
            environment:
              - id: dev
                transactionManager: {type: JDBC}
                dataSource: {type: UNPOOLED}
        """,
        properties={"env": "dev"},
    )

    assert configuration.variables == {"env": "dev"}
    assert configuration.environment.id == "dev"


def test_parse_properties_text():
    """Test the properties file format: separators, comments and continuations."""
    text = "\n".join(
        [
            "# comment",
            "! also a comment",
            "",
            "plain=value",
            "colon: value with spaces",
            "spaced   value",
            "url = jdbc:fake://host:5432/db",
            "joined = first, \\",
            "         second",
            "empty=",
        ]
    )

    assert parse_properties_text(text) == {
        "plain": "value",
        "colon": "value with spaces",
        "spaced": "value",
        "url": "jdbc:fake://host:5432/db",
        "joined": "first, second",
        "empty": "",
    }


class TestPlaceholderResolver:
    def test_known_and_unknown_keys(self):
        resolver = PlaceholderResolver({"host": "db", "port": "5432"})

        assert resolver.resolve("${host}:${port}") == "db:5432"
        assert resolver.resolve("${missing}") == "${missing}"
        assert resolver.resolve(None) is None

    def test_escaped_placeholder_is_kept_literally(self):
        resolver = PlaceholderResolver({"host": "db"})

        assert resolver.resolve("\\${host}") == "${host}"

    def test_default_values_require_opt_in(self):
        assert PlaceholderResolver({}).resolve("${user:guest}") == "${user:guest}"

        resolver = PlaceholderResolver({ENABLE_DEFAULT_VALUE: "true"})
        assert resolver.resolve("${user:guest}") == "guest"

        resolver = PlaceholderResolver({ENABLE_DEFAULT_VALUE: "true", "user": "scott"})
        assert resolver.resolve("${user:guest}") == "scott"

    def test_custom_default_separator(self):
        resolver = PlaceholderResolver({ENABLE_DEFAULT_VALUE: "true", DEFAULT_VALUE_SEPARATOR: "?:"})

        assert resolver.resolve("${url?:jdbc:fake://localhost}") == "jdbc:fake://localhost"


def test_property_without_value_is_rejected(build):
    with pytest.raises(ConfigurationParseError) as exc_info:
        build("configuration: {properties: {property: [{name: env, value: null}]}}")

    assert exc_info.value.section == "properties"
    assert isinstance(exc_info.value.__cause__, DocumentError)
    assert "named 'env' must declare a value" in str(exc_info.value.__cause__)
