"""Properties section: builds the variables used for placeholder expansion."""

import logging
from typing import Dict, Optional

from .document import ConfigNode
from .exceptions import AmbiguousPropertySourceError
from .resources import Resources

logger = logging.getLogger(__name__)


class PropertyResolver:
    """Layers declared pairs, an external property source and inherited variables."""

    def __init__(self, resources: Optional[Resources] = None):
        """Initialize property resolver.

        Args:
            resources: Loader for ``resource`` and ``url`` property sources
        """
        self.resources = resources or Resources()

    def resolve(
        self, node: Optional[ConfigNode], inherited: Optional[Dict[str, str]] = None
    ) -> Optional[Dict[str, str]]:
        """Build the PropertyBag declared by a properties node.

        Precedence, lowest first: declared child pairs, the external source,
        inherited variables.

        Args:
            node: The properties node  # (None means no properties section)
            inherited: Variables already present before parsing

        Returns:
            Merged PropertyBag, or None when there is no properties section

        Raises:
            AmbiguousPropertySourceError: If both ``resource`` and ``url`` are declared
        """
        if node is None:
            return None

        properties = node.children_as_properties()  # Dict[str, str] (declared pairs)
        resource = node.get_string_attribute("resource")
        url = node.get_string_attribute("url")
        if resource is not None and url is not None:
            raise AmbiguousPropertySourceError(resource, url)

        # Layer external source over declared pairs
        if resource is not None:
            properties.update(self.resources.get_resource_as_properties(resource))
            logger.debug("Loaded properties from resource %s", resource)
        elif url is not None:
            properties.update(self.resources.get_url_as_properties(url))
            logger.debug("Loaded properties from url %s", url)

        # Inherited variables win on collision
        if inherited:
            properties.update(inherited)
        return properties
