"""Test cases for environment selection and database id discovery."""

import pytest

from mapconf import ConfigurationParseError
from mapconf.defaults import ManagedTransactionFactory, PooledDataSource, VendorDatabaseIdProvider
from mapconf.exceptions import MissingEnvironmentIdError, MissingFactoryError

ENVIRONMENTS = """
configuration:
  environments:
    default: dev
    environment:
      - id: dev
        transactionManager: {type: JDBC}
        dataSource:
          type: UNPOOLED
          property: [{name: url, value: "fake://dev"}, {name: driver, value: tests.data.fakedb}]
      - id: test
        transactionManager:
          type: MANAGED
          property: [{name: closeConnection, value: "false"}]
        dataSource:
          type: POOLED
          property: [{name: url, value: "fake://test"}, {name: poolMaximumActiveConnections, value: "3"}]
      - id: test
        transactionManager: {type: JDBC}
        dataSource: {type: UNPOOLED}
"""


def test_default_environment_is_selected(build):
    """Test selection by the default attribute.

    Given environments dev and test with default dev
    When no environment id is passed to the builder
    Then dev is installed
    """
    configuration = build(ENVIRONMENTS)

    assert configuration.environment.id == "dev"
    assert configuration.environment.data_source.url == "fake://dev"


def test_explicit_environment_wins_over_default(build):
    """Test explicit selection; the first of two environments sharing an id wins."""
    configuration = build(ENVIRONMENTS, environment="test")

    environment = configuration.environment
    assert environment.id == "test"
    assert isinstance(environment.transaction_factory, ManagedTransactionFactory)
    assert environment.transaction_factory.close_connection is False
    assert isinstance(environment.data_source, PooledDataSource)
    assert environment.data_source.url == "fake://test"
    assert environment.data_source.pool_maximum_active_connections == 3


def test_unmatched_environment_installs_nothing(build):
    """Test that an id matching no declaration is not an error."""
    configuration = build(ENVIRONMENTS, environment="prod")

    assert configuration.environment is None


def test_missing_target_id(build):
    """Test that an environments section needs a default or an explicit id."""
    with pytest.raises(ConfigurationParseError) as exc_info:
        build(
            """
            configuration:
              environments:
                environment:
                  - id: dev
                    transactionManager: {type: JDBC}
                    dataSource: {type: UNPOOLED}
            """
        )

    assert exc_info.value.section == "environments"
    assert isinstance(exc_info.value.__cause__, MissingEnvironmentIdError)
    assert "No environment specified" in str(exc_info.value.__cause__)


def test_environment_without_id(build):
    with pytest.raises(ConfigurationParseError) as exc_info:
        build(
            """
            configuration:
              environments:
                default: dev
                environment:
                  - transactionManager: {type: JDBC}
                    dataSource: {type: UNPOOLED}
            """
        )

    assert isinstance(exc_info.value.__cause__, MissingEnvironmentIdError)
    assert "requires an id" in str(exc_info.value.__cause__)


@pytest.mark.parametrize(
    "missing, kind", [("dataSource", "DataSourceFactory"), ("transactionManager", "TransactionFactory")]
)
def test_selected_environment_without_factory(build, missing: str, kind: str):
    """Test that the selected environment must declare both factories."""
    declarations = {"transactionManager": "{type: JDBC}", "dataSource": "{type: UNPOOLED}"}
    del declarations[missing]
    lines = "\n".join(f"        {key}: {value}" for key, value in declarations.items())

    with pytest.raises(ConfigurationParseError) as exc_info:
        build(f"configuration:\n  environments:\n    default: dev\n    environment:\n      - id: dev\n{lines}\n")

    cause = exc_info.value.__cause__
    assert isinstance(cause, MissingFactoryError)
    assert cause.kind == kind
    assert cause.environment_id == "dev"


def test_unselected_environments_are_not_validated(build):
    """Test that only the selected environment is instantiated."""
    configuration = build(
        """
        configuration:
          environments:
            default: dev
            environment:
              - id: dev
                transactionManager: {type: JDBC}
                dataSource: {type: UNPOOLED}
              - id: broken
                transactionManager: {type: no.such.Factory}
        """
    )

    assert configuration.environment.id == "dev"


def test_unknown_data_source_property(build):
    with pytest.raises(ConfigurationParseError) as exc_info:
        build(
            """
            configuration:
              environments:
                default: dev
                environment:
                  - id: dev
                    transactionManager: {type: JDBC}
                    dataSource:
                      type: UNPOOLED
                      property: [{name: colour, value: blue}]
            """
        )

    assert "colour" in str(exc_info.value)


class TestDatabaseIdProvider:
    DOCUMENT = """
    configuration:
      environments:
        default: dev
        environment:
          - id: dev
            transactionManager: {{type: JDBC}}
            dataSource:
              type: UNPOOLED
              property: [{{name: driver, value: tests.data.fakedb}}]
      databaseIdProvider:
        {provider}
    """

    def test_vendor_alias_maps_product_name(self, build):
        """Test the legacy VENDOR alias and fragment mapping.

        Given a VENDOR provider mapping "FakeDB" to "fake"
        When the environment's driver reports "FakeDB Enterprise 12.1"
        Then the database id is "fake"
        """
        configuration = build(
            self.DOCUMENT.format(provider="type: VENDOR\n        property: [{name: FakeDB, value: fake}]")
        )

        assert configuration.database_id == "fake"

    def test_product_name_without_mapping(self, build):
        configuration = build(self.DOCUMENT.format(provider="type: DB_VENDOR"))

        assert configuration.database_id == "FakeDB Enterprise 12.1"

    def test_unmatched_product_name(self, build):
        configuration = build(
            self.DOCUMENT.format(provider="type: DB_VENDOR\n        property: [{name: Oracle, value: oracle}]")
        )

        assert configuration.database_id is None

    def test_custom_provider(self, build):
        configuration = build(
            self.DOCUMENT.format(
                provider="type: tests.data.components.FixedDatabaseIdProvider\n"
                "        property: [{name: id, value: custom}]"
            )
        )

        assert configuration.database_id == "custom"

    def test_no_environment_no_database_id(self, build):
        configuration = build("configuration: {databaseIdProvider: {type: VENDOR}}")

        assert configuration.database_id is None

    def test_vendor_provider_requires_data_source(self):
        with pytest.raises(ValueError):
            VendorDatabaseIdProvider().get_database_id(None)
