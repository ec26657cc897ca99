"""Resource loading for property sources and mapper documents."""

import io
import logging
import os
from importlib import resources as importlib_resources
from pathlib import Path
from typing import IO, Dict, Iterable, List, Optional, Union
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

import requests

from .utils import load_yaml, scalar_to_string

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class Resources:
    """Opens resources by path or URL.

    A resource is either a path searched under the configured roots, or a
    ``package:relative/path`` reference to data shipped inside a Python package.
    """

    def __init__(self, roots: Optional[Iterable[Union[str, Path]]] = None, timeout: float = DEFAULT_TIMEOUT):
        """Initialize resource loader.

        Args:
            roots: Directories searched for relative resource paths  # (defaults to the working directory)
            timeout: Seconds to wait for an HTTP source before giving up
        """
        self.roots: List[Path] = [Path(root) for root in roots] if roots else [Path.cwd()]
        self.timeout = timeout

    def get_resource_as_stream(self, resource: str) -> IO[bytes]:
        """Open a resource for binary reading.

        Raises:
            FileNotFoundError: If the resource cannot be found
        """
        if ":" in resource and not os.path.isabs(resource) and not _is_drive_path(resource):
            package, _, relative = resource.partition(":")
            logger.debug("Opening package resource %s from %s", relative, package)
            return importlib_resources.files(package).joinpath(relative).open("rb")

        path = Path(resource)
        if path.is_absolute():
            return open(path, "rb")
        for root in self.roots:
            candidate = root / path
            if candidate.is_file():
                logger.debug("Opening resource %s", candidate)
                return open(candidate, "rb")
        raise FileNotFoundError(f"Could not find resource {resource}")

    def get_url_as_stream(self, url: str) -> IO[bytes]:
        """Open a URL for binary reading.

        ``file:`` URLs are opened from the local filesystem; ``http(s)`` URLs are
        fetched with ``requests`` under the loader's timeout.

        Raises:
            FileNotFoundError: If a file URL does not exist
            requests.RequestException: If an HTTP fetch fails or answers with an error status
            ValueError: If the URL scheme is not supported
        """
        parsed = urlparse(url)
        if parsed.scheme == "file":
            logger.debug("Opening file URL %s", url)
            return open(url2pathname(unquote(parsed.path)), "rb")
        if parsed.scheme not in ("http", "https"):
            raise ValueError(f"Unsupported URL scheme '{parsed.scheme}' in {url}")

        logger.debug("Fetching URL %s (timeout %ss)", url, self.timeout)
        response = requests.get(url, timeout=self.timeout)
        response.raise_for_status()
        return io.BytesIO(response.content)

    def get_resource_as_properties(self, resource: str) -> Dict[str, str]:
        """Load key/value pairs from a resource."""
        with self.get_resource_as_stream(resource) as stream:
            return load_properties(stream, resource)

    def get_url_as_properties(self, url: str) -> Dict[str, str]:
        """Load key/value pairs from a URL."""
        with self.get_url_as_stream(url) as stream:
            return load_properties(stream, url)


def load_properties(stream: IO[bytes], name: str = "") -> Dict[str, str]:
    """Parse a properties stream.

    Args:
        stream: Binary stream
        name: Source name; a .yaml/.yml suffix selects YAML parsing

    Returns:
        Ordered key/value pairs  # (all values as strings)
    """
    text = stream.read().decode("utf-8")

    if name.lower().endswith((".yaml", ".yml")):
        data = load_yaml(text) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Properties source {name} must contain a YAML mapping at the top level.")
        return {str(key): scalar_to_string(value) for key, value in data.items() if value is not None}

    return parse_properties_text(text)


def parse_properties_text(text: str) -> Dict[str, str]:
    """Parse ``key=value`` / ``key: value`` lines with ``#``/``!`` comments and ``\\`` continuations."""
    properties = {}  # Dict[str, str] (ordered pairs)
    logical = ""
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not logical and (not line or line[0] in "#!"):
            continue

        # Odd number of trailing backslashes continues the line
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            logical += line[:-1]
            continue
        logical += line

        key, value = _split_property(logical)
        properties[key] = value
        logical = ""

    if logical:
        key, value = _split_property(logical)
        properties[key] = value
    return properties


def _split_property(line: str) -> tuple[str, str]:
    for index, char in enumerate(line):
        if char in "=:" and (index == 0 or line[index - 1] != "\\"):
            return line[:index].strip(), line[index + 1 :].strip()
        if char.isspace():
            rest = line[index:].lstrip()
            if rest[:1] in ("=", ":"):
                rest = rest[1:]
            return line[:index], rest.strip()
    return line, ""


def _is_drive_path(resource: str) -> bool:
    """Windows drive letters like C:\\ are paths, not package references."""
    return len(resource) > 2 and resource[1] == ":" and resource[2] in "\\/"
