"""Unit tests for the Azure CLI and Azure SDK management clients."""

import json
import subprocess
from types import SimpleNamespace
from unittest.mock import MagicMock, Mock, patch

import pytest
from azure.mgmt.cosmosdb.models import SqlContainerGetPropertiesResource

from scripts.cosmos.cosmos_client import (
    AzureCliClient,
    AzureSdkClient,
    build_client,
)
from scripts.cosmos.exceptions import AzureCliError, MissingToolError


def _completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(
        args=["az"], returncode=returncode, stdout=stdout, stderr=stderr
    )


@pytest.fixture
def cli_client(mock_logger):
    return AzureCliClient("my-rg", "my-account", timeout=30, logger=mock_logger)


class TestAzureCliClient:

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_list_databases_parses_json(self, mock_run, cli_client, sample_databases):
        mock_run.return_value = _completed(json.dumps(sample_databases))

        result = cli_client.list_databases()

        assert result == sample_databases
        cmd = mock_run.call_args.args[0]
        assert cmd[:5] == ["az", "cosmosdb", "sql", "database", "list"]
        assert cmd[cmd.index("--resource-group") + 1] == "my-rg"
        assert cmd[cmd.index("--account-name") + 1] == "my-account"
        assert mock_run.call_args.kwargs["timeout"] == 30

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_show_database_passes_name(self, mock_run, cli_client):
        mock_run.return_value = _completed(json.dumps({"name": "alpha"}))

        assert cli_client.show_database("alpha") == {"name": "alpha"}
        cmd = mock_run.call_args.args[0]
        assert cmd[cmd.index("--name") + 1] == "alpha"

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_list_containers_passes_database(self, mock_run, cli_client, sample_containers):
        mock_run.return_value = _completed(json.dumps(sample_containers["alpha"]))

        assert cli_client.list_containers("alpha") == sample_containers["alpha"]
        cmd = mock_run.call_args.args[0]
        assert cmd[:5] == ["az", "cosmosdb", "sql", "container", "list"]
        assert cmd[cmd.index("--database-name") + 1] == "alpha"

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_disable_sets_ttl_to_zero(self, mock_run, cli_client):
        mock_run.return_value = _completed("")

        cli_client.disable_analytical_storage("alpha", "orders")

        cmd = mock_run.call_args.args[0]
        assert cmd[:5] == ["az", "cosmosdb", "sql", "container", "update"]
        assert cmd[cmd.index("--database-name") + 1] == "alpha"
        assert cmd[cmd.index("--name") + 1] == "orders"
        assert cmd[cmd.index("--analytical-storage-ttl") + 1] == "0"

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_subscription_is_forwarded(self, mock_run, mock_logger):
        client = AzureCliClient("rg", "acct", subscription_id="sub-1", logger=mock_logger)
        mock_run.return_value = _completed("[]")

        client.list_databases()

        cmd = mock_run.call_args.args[0]
        assert cmd[cmd.index("--subscription") + 1] == "sub-1"

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_non_zero_exit_raises(self, mock_run, cli_client):
        mock_run.return_value = _completed(returncode=3, stderr="ERROR: (NotFound)\n")

        with pytest.raises(AzureCliError) as exc_info:
            cli_client.list_databases()

        assert exc_info.value.returncode == 3
        assert exc_info.value.stderr == "ERROR: (NotFound)"

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_timeout_raises(self, mock_run, cli_client):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd=["az"], timeout=30)

        with pytest.raises(AzureCliError, match="timed out"):
            cli_client.list_containers("alpha")

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_invalid_json_raises(self, mock_run, cli_client):
        mock_run.return_value = _completed("not json")

        with pytest.raises(AzureCliError, match="invalid JSON"):
            cli_client.list_databases()

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_list_expects_array(self, mock_run, cli_client):
        mock_run.return_value = _completed(json.dumps({"name": "alpha"}))

        with pytest.raises(AzureCliError, match="JSON array"):
            cli_client.list_databases()

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_ensure_logged_in_skips_login_when_session_exists(self, mock_run, cli_client):
        mock_run.return_value = _completed(json.dumps({"user": {"name": "me"}}))

        cli_client.ensure_logged_in()

        assert mock_run.call_count == 1
        assert mock_run.call_args.args[0][:3] == ["az", "account", "show"]

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_ensure_logged_in_runs_login(self, mock_run, cli_client):
        mock_run.side_effect = [_completed(returncode=1, stderr="Please run 'az login'"), _completed()]

        cli_client.ensure_logged_in()

        assert mock_run.call_args.args[0][:2] == ["az", "login"]
        cli_client.logger.warning.assert_called_once()

    @patch("scripts.cosmos.cosmos_client.subprocess.run")
    def test_failed_login_raises(self, mock_run, cli_client):
        mock_run.side_effect = [_completed(returncode=1), _completed(returncode=1)]

        with pytest.raises(AzureCliError):
            cli_client.ensure_logged_in()

    @patch("scripts.cosmos.cosmos_client.shutil.which", return_value=None)
    def test_check_installed_raises_when_missing(self, mock_which, cli_client):
        with pytest.raises(MissingToolError, match="'az' not found"):
            cli_client.check_installed()


@pytest.fixture
def sdk_management_client():
    client = MagicMock()
    client.sql_resources.list_sql_databases.return_value = [
        SimpleNamespace(id="/dbs/alpha", name="alpha"),
    ]
    client.sql_resources.get_sql_database.return_value = SimpleNamespace(
        id="/dbs/beta", name="beta"
    )
    client.sql_resources.list_sql_containers.return_value = [
        SimpleNamespace(
            id="/containers/orders",
            name="orders",
            resource=SimpleNamespace(id="orders", analytical_storage_ttl=30),
        ),
        SimpleNamespace(id="/containers/bare", name="bare", resource=None),
    ]
    return client


@pytest.fixture
def sdk_client(sdk_management_client, mock_logger):
    return AzureSdkClient(
        "my-rg",
        "my-account",
        "sub-1",
        management_client=sdk_management_client,
        logger=mock_logger,
    )


class TestAzureSdkClient:

    def test_list_databases_normalizes_models(self, sdk_client, sdk_management_client):
        assert sdk_client.list_databases() == [{"id": "/dbs/alpha", "name": "alpha"}]
        sdk_management_client.sql_resources.list_sql_databases.assert_called_once_with(
            resource_group_name="my-rg", account_name="my-account"
        )

    def test_show_database(self, sdk_client):
        assert sdk_client.show_database("beta")["name"] == "beta"

    def test_list_containers_matches_cli_shape(self, sdk_client):
        containers = sdk_client.list_containers("alpha")

        assert containers[0] == {
            "id": "/containers/orders",
            "name": "orders",
            "resource": {"id": "orders", "analyticalStorageTtl": 30},
        }
        assert containers[1]["resource"] == {"id": None, "analyticalStorageTtl": None}

    def test_disable_resubmits_container_with_zero_ttl(self, sdk_client, sdk_management_client):
        sdk_management_client.sql_resources.get_sql_container.return_value = SimpleNamespace(
            location="westeurope",
            tags={},
            resource=SqlContainerGetPropertiesResource(
                {"id": "orders", "analyticalStorageTtl": 30}
            ),
        )
        poller = Mock()
        sdk_management_client.sql_resources.begin_create_update_sql_container.return_value = poller

        sdk_client.disable_analytical_storage("alpha", "orders")

        kwargs = sdk_management_client.sql_resources.begin_create_update_sql_container.call_args.kwargs
        assert kwargs["database_name"] == "alpha"
        assert kwargs["container_name"] == "orders"
        parameters = kwargs["create_update_sql_container_parameters"]
        assert parameters.location == "westeurope"
        assert parameters.resource.id == "orders"
        assert parameters.resource.analytical_storage_ttl == 0
        poller.result.assert_called_once_with()

    def test_disable_keeps_every_container_setting(self, sdk_client, sdk_management_client):
        current_resource = SqlContainerGetPropertiesResource(
            {
                "id": "orders",
                "analyticalStorageTtl": -1,
                "defaultTtl": 3600,
                "partitionKey": {"paths": ["/tenantId"], "kind": "Hash", "version": 2},
                "computedProperties": [
                    {"name": "cp_lower_name", "query": "SELECT VALUE LOWER(c.name) FROM c"}
                ],
                "vectorEmbeddingPolicy": {
                    "vectorEmbeddings": [
                        {
                            "path": "/embedding",
                            "dataType": "float32",
                            "distanceFunction": "cosine",
                            "dimensions": 3,
                        }
                    ]
                },
                "fullTextPolicy": {
                    "defaultLanguage": "en-US",
                    "fullTextPaths": [{"path": "/text", "language": "en-US"}],
                },
                "_rid": "hVJ3AN3sX0A=",
                "_ts": 1700000000,
                "_etag": '"00000000-0000-0000-0000-000000000000"',
            }
        )
        sdk_management_client.sql_resources.get_sql_container.return_value = SimpleNamespace(
            location="westeurope", tags={"team": "data"}, resource=current_resource
        )

        sdk_client.disable_analytical_storage("alpha", "orders")

        parameters = sdk_management_client.sql_resources.begin_create_update_sql_container.call_args.kwargs[
            "create_update_sql_container_parameters"
        ]
        sent = parameters.resource
        assert sent.analytical_storage_ttl == 0
        assert sent.default_ttl == 3600
        assert sent.partition_key.paths == ["/tenantId"]
        assert sent.computed_properties[0].name == "cp_lower_name"
        assert sent.vector_embedding_policy.vector_embeddings[0].path == "/embedding"
        assert sent.full_text_policy.default_language == "en-US"
        assert parameters.tags == {"team": "data"}

        body = sent.as_dict()
        assert "_rid" not in body
        assert "_ts" not in body
        assert "_etag" not in body
        # The resource read from Azure is left untouched
        assert current_resource.analytical_storage_ttl == -1

    def test_ensure_logged_in_requests_token(self, sdk_management_client, mock_logger):
        credential = Mock()
        client = AzureSdkClient(
            "rg",
            "acct",
            "sub-1",
            credential=credential,
            management_client=sdk_management_client,
            logger=mock_logger,
        )

        client.ensure_logged_in()

        credential.get_token.assert_called_once_with("https://management.azure.com/.default")


class TestBuildClient:

    @patch("scripts.cosmos.cosmos_client.shutil.which", return_value="/usr/bin/az")
    def test_cli_backend(self, mock_which, mock_logger):
        client = build_client("cli", "rg", "acct", logger=mock_logger)
        assert isinstance(client, AzureCliClient)

    @patch("scripts.cosmos.cosmos_client.shutil.which", return_value=None)
    def test_cli_backend_without_az(self, mock_which, mock_logger):
        with pytest.raises(MissingToolError):
            build_client("cli", "rg", "acct", logger=mock_logger)

    @patch("scripts.cosmos.cosmos_client.CosmosDBManagementClient")
    @patch("scripts.cosmos.cosmos_client.DefaultAzureCredential")
    def test_sdk_backend(self, mock_credential, mock_mgmt, mock_logger):
        client = build_client("sdk", "rg", "acct", subscription_id="sub-1", logger=mock_logger)

        assert isinstance(client, AzureSdkClient)
        mock_mgmt.assert_called_once_with(
            credential=mock_credential.return_value,
            subscription_id="sub-1",
            user_agent="Cosmos-Analytical-Storage-Disabler/1.0",
        )

    def test_sdk_backend_requires_subscription(self, mock_logger):
        with patch("scripts.cosmos.cosmos_client.config.AZURE_SUBSCRIPTION_ID", None):
            with pytest.raises(ValueError, match="AZURE_SUBSCRIPTION_ID"):
                build_client("sdk", "rg", "acct", logger=mock_logger)

    def test_unknown_backend(self, mock_logger):
        with pytest.raises(ValueError, match="Unknown client backend"):
            build_client("rest", "rg", "acct", logger=mock_logger)
