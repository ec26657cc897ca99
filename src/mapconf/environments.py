"""Environment selection among declared deployment environments."""

import logging
from typing import Optional

from .components import ComponentDescriptor, ComponentResolver
from .configuration import Configuration, Environment
from .document import ConfigNode
from .exceptions import MissingEnvironmentIdError, MissingFactoryError

logger = logging.getLogger(__name__)


class EnvironmentSelector:
    """Selects one environment and installs its transaction factory and data source."""

    def __init__(self, resolver: ComponentResolver):
        self.resolver = resolver

    def select(
        self, node: Optional[ConfigNode], configuration: Configuration, environment_id: Optional[str] = None
    ) -> Optional[str]:
        """Install the first declared environment whose id matches the target id.

        Args:
            node: The environments node  # (None is a no-op)
            configuration: Receiver of the selected Environment
            environment_id: Explicit target id; falls back to the node's ``default`` attribute

        Returns:
            The target id that was used  # (None when there is no environments section)

        Raises:
            MissingEnvironmentIdError: If no target id is available or a child lacks an id
            MissingFactoryError: If the selected environment lacks a transaction manager or data source
        """
        if node is None:
            return environment_id
        if environment_id is None:
            environment_id = node.get_string_attribute("default")

        for child in node.get_children():
            child_id = child.get_string_attribute("id")
            if not self._is_specified(environment_id, child_id):
                continue

            transaction_factory = self._create_factory(child, "transactionManager", "TransactionFactory", child_id)
            data_source_factory = self._create_factory(child, "dataSource", "DataSourceFactory", child_id)
            data_source = data_source_factory.get_data_source()
            configuration.environment = Environment(child_id, transaction_factory, data_source)
            logger.debug("Selected environment %s", child_id)
            break
        else:
            logger.debug("No environment declared with id %s", environment_id)

        return environment_id

    def _is_specified(self, environment_id: Optional[str], child_id: Optional[str]) -> bool:
        if environment_id is None:
            raise MissingEnvironmentIdError()
        if child_id is None:
            raise MissingEnvironmentIdError("Environment requires an id attribute.")
        return environment_id == child_id

    def _create_factory(self, environment: ConfigNode, section: str, kind: str, environment_id: str):
        node = environment.eval_node(section)
        if node is None:
            raise MissingFactoryError(kind, environment_id)
        return self.resolver.create(ComponentDescriptor.from_node(node))
