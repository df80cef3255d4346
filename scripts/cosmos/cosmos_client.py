"""
Cosmos DB management clients.

The analytical storage tool talks to Azure through a small interface with four
remote operations (list databases, show database, list containers, disable
analytical storage on a container) plus a login check. Two implementations are
provided:

- AzureCliClient: shells out to `az cosmosdb sql ...` and parses its JSON output.
  This is the default and needs only an installed, logged-in Azure CLI.
- AzureSdkClient: uses azure-mgmt-cosmosdb with DefaultAzureCredential. It
  normalizes SDK models into the same payload shape the CLI returns, so the
  rest of the tool never needs to know which backend is in use.

Each method performs exactly one attempt; retries are the caller's job.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from typing import Any, Protocol

from azure.identity import DefaultAzureCredential
from azure.mgmt.cosmosdb import CosmosDBManagementClient
from azure.mgmt.cosmosdb.models import (
    SqlContainerCreateUpdateParameters,
    SqlContainerResource,
)

from config.settings import config
from scripts.cosmos.exceptions import AzureCliError, MissingToolError
from utils.logging import get_logger

ARM_SCOPE = "https://management.azure.com/.default"


class CosmosManagementClient(Protocol):
    """Remote operations the analytical storage tool depends on."""

    def ensure_logged_in(self) -> None: ...

    def list_databases(self) -> list[dict[str, Any]]: ...

    def show_database(self, database_name: str) -> dict[str, Any]: ...

    def list_containers(self, database_name: str) -> list[dict[str, Any]]: ...

    def disable_analytical_storage(
        self, database_name: str, container_name: str
    ) -> None: ...


class AzureCliClient:
    """Cosmos DB management operations backed by the Azure CLI."""

    def __init__(
        self,
        resource_group: str,
        account_name: str,
        subscription_id: str | None = None,
        az_path: str | None = None,
        timeout: int | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the client for one Cosmos DB account.

        Args:
            resource_group (str): Resource group containing the account
            account_name (str): Cosmos DB account name
            subscription_id (str): Optional subscription passed to every cosmosdb command
            az_path (str): Azure CLI executable (defaults to config.AZ_CLI_PATH)
            timeout (int): Per-command timeout in seconds (defaults to config.AZ_COMMAND_TIMEOUT)
            logger (logging.Logger): Logger (defaults to the tool logger)
        """
        self.resource_group = resource_group
        self.account_name = account_name
        self.subscription_id = subscription_id
        self.az_path = az_path or config.AZ_CLI_PATH
        self.timeout = timeout or config.AZ_COMMAND_TIMEOUT
        self.logger = logger or get_logger()

    def check_installed(self) -> None:
        """Raise MissingToolError if the Azure CLI is not on PATH."""
        if shutil.which(self.az_path) is None:
            raise MissingToolError(self.az_path)

    def _account_args(self) -> list[str]:
        args = [
            "--resource-group",
            self.resource_group,
            "--account-name",
            self.account_name,
        ]
        if self.subscription_id:
            args.extend(["--subscription", self.subscription_id])
        return args

    def _run(self, args: list[str], parse_json: bool = True) -> Any:
        """
        Run one az command and return its parsed JSON output.

        Raises:
            AzureCliError: On non-zero exit, timeout, or unparseable output
        """
        cmd = [self.az_path, *args]
        self.logger.debug(f"Running: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise AzureCliError(
                cmd, -1, f"timed out after {self.timeout} seconds"
            ) from e

        if result.returncode != 0:
            raise AzureCliError(cmd, result.returncode, result.stderr)

        if not parse_json:
            return None

        try:
            return json.loads(result.stdout or "null")
        except json.JSONDecodeError as e:
            raise AzureCliError(
                cmd, result.returncode, f"invalid JSON output: {e}"
            ) from e

    def _run_list(self, args: list[str]) -> list[dict[str, Any]]:
        data = self._run(args)
        if not isinstance(data, list):
            raise AzureCliError(
                [self.az_path, *args], 0, f"expected a JSON array, got {type(data).__name__}"
            )
        return data

    def ensure_logged_in(self) -> None:
        """Check the CLI session and start an interactive `az login` if there is none."""
        try:
            self._run(["account", "show", "--output", "json"])
            return
        except AzureCliError:
            self.logger.warning("Not logged into Azure. Initiating login...")

        # Interactive: stderr stays attached so device-code instructions reach the operator
        result = subprocess.run(
            [self.az_path, "login", "--output", "none"],
            stdout=subprocess.DEVNULL,
        )
        if result.returncode != 0:
            raise AzureCliError([self.az_path, "login"], result.returncode)
        self.logger.info("Login successful. Initializing Azure context...")

    def list_databases(self) -> list[dict[str, Any]]:
        return self._run_list(
            ["cosmosdb", "sql", "database", "list", *self._account_args(), "--output", "json"]
        )

    def show_database(self, database_name: str) -> dict[str, Any]:
        data = self._run(
            [
                "cosmosdb",
                "sql",
                "database",
                "show",
                *self._account_args(),
                "--name",
                database_name,
                "--output",
                "json",
            ]
        )
        if not isinstance(data, dict):
            raise AzureCliError(
                [self.az_path, "cosmosdb", "sql", "database", "show"],
                0,
                f"expected a JSON object, got {type(data).__name__}",
            )
        return data

    def list_containers(self, database_name: str) -> list[dict[str, Any]]:
        return self._run_list(
            [
                "cosmosdb",
                "sql",
                "container",
                "list",
                *self._account_args(),
                "--database-name",
                database_name,
                "--output",
                "json",
            ]
        )

    def disable_analytical_storage(self, database_name: str, container_name: str) -> None:
        self._run(
            [
                "cosmosdb",
                "sql",
                "container",
                "update",
                *self._account_args(),
                "--database-name",
                database_name,
                "--name",
                container_name,
                "--analytical-storage-ttl",
                "0",
                "--output",
                "none",
            ],
            parse_json=False,
        )


class AzureSdkClient:
    """Cosmos DB management operations backed by azure-mgmt-cosmosdb."""

    def __init__(
        self,
        resource_group: str,
        account_name: str,
        subscription_id: str,
        credential: Any | None = None,
        management_client: Any | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the SDK client.

        Args:
            resource_group (str): Resource group containing the account
            account_name (str): Cosmos DB account name
            subscription_id (str): Subscription owning the account
            credential: Azure credential (defaults to DefaultAzureCredential, which works
                with managed identity in Azure and the CLI session locally)
            management_client: Pre-built CosmosDBManagementClient (mainly for tests)
            logger (logging.Logger): Logger (defaults to the tool logger)
        """
        self.resource_group = resource_group
        self.account_name = account_name
        self.subscription_id = subscription_id
        self.logger = logger or get_logger()

        if management_client is None:
            credential = credential or DefaultAzureCredential()
            management_client = CosmosDBManagementClient(
                credential=credential,
                subscription_id=subscription_id,
                user_agent=config.USER_AGENT,
            )
        self.credential = credential
        self.client = management_client

    @staticmethod
    def _database_payload(database: Any) -> dict[str, Any]:
        return {"id": database.id, "name": database.name}

    @staticmethod
    def _container_payload(container: Any) -> dict[str, Any]:
        resource = container.resource
        return {
            "id": container.id,
            "name": container.name,
            "resource": {
                "id": getattr(resource, "id", None),
                "analyticalStorageTtl": getattr(resource, "analytical_storage_ttl", None),
            },
        }

    def ensure_logged_in(self) -> None:
        """Acquire an ARM token up front so credential problems surface before enumeration."""
        if self.credential is None:
            return
        self.credential.get_token(ARM_SCOPE)
        self.logger.debug("Azure credential acquired an ARM token")

    def list_databases(self) -> list[dict[str, Any]]:
        databases = self.client.sql_resources.list_sql_databases(
            resource_group_name=self.resource_group, account_name=self.account_name
        )
        return [self._database_payload(db) for db in databases]

    def show_database(self, database_name: str) -> dict[str, Any]:
        database = self.client.sql_resources.get_sql_database(
            resource_group_name=self.resource_group,
            account_name=self.account_name,
            database_name=database_name,
        )
        return self._database_payload(database)

    def list_containers(self, database_name: str) -> list[dict[str, Any]]:
        containers = self.client.sql_resources.list_sql_containers(
            resource_group_name=self.resource_group,
            account_name=self.account_name,
            database_name=database_name,
        )
        return [self._container_payload(c) for c in containers]

    def disable_analytical_storage(self, database_name: str, container_name: str) -> None:
        """
        Re-submit the container definition with analytical_storage_ttl=0 and wait for it.

        The create/update call replaces the whole container definition, so every field of
        the current resource is carried over. Read-only system fields (_rid, _ts, _etag) are
        left out.
        """
        current = self.client.sql_resources.get_sql_container(
            resource_group_name=self.resource_group,
            account_name=self.account_name,
            database_name=database_name,
            container_name=container_name,
        )

        resource = SqlContainerResource(current.resource.as_dict(exclude_readonly=True))
        resource.analytical_storage_ttl = 0

        parameters = SqlContainerCreateUpdateParameters(
            location=current.location,
            tags=current.tags,
            resource=resource,
        )

        poller = self.client.sql_resources.begin_create_update_sql_container(
            resource_group_name=self.resource_group,
            account_name=self.account_name,
            database_name=database_name,
            container_name=container_name,
            create_update_sql_container_parameters=parameters,
        )
        poller.result()


def build_client(
    backend: str,
    resource_group: str,
    account_name: str,
    subscription_id: str | None = None,
    logger: logging.Logger | None = None,
) -> CosmosManagementClient:
    """
    Create the management client for the selected backend.

    Raises:
        MissingToolError: If the cli backend is selected and `az` is not installed
        ValueError: If the backend is unknown or the sdk backend has no subscription id
    """
    if backend == "cli":
        client = AzureCliClient(
            resource_group, account_name, subscription_id=subscription_id, logger=logger
        )
        client.check_installed()
        return client

    if backend == "sdk":
        resolved_subscription = config.validate_for_sdk_operations(subscription_id)
        return AzureSdkClient(
            resource_group, account_name, resolved_subscription, logger=logger
        )

    raise ValueError(f"Unknown client backend '{backend}'. Use one of {config.SUPPORTED_BACKENDS}")
