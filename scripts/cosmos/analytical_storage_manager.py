"""
Cosmos DB Analytical Storage Manager

This module finds the SQL containers of a Cosmos DB account that have
analytical storage enabled and disables it on each of them.

Key Features:
- Enumeration of every database in the account, or of one named database
- Container classification tolerant of both API shapes of analyticalStorageTtl
- Fixed-delay retries around every remote call
- Per-database and per-container failure isolation: one failure never aborts the batch
- Deterministic (database, container) ordering for display and for disabling

Processing Pipeline:
1. List databases (or show the requested one); failure here is fatal
2. List containers per database; a failure skips that database only
3. Validate container payloads and keep those with analytical storage enabled
4. After confirmation, disable each enabled container in sorted order
5. Return per-container outcomes for the final summary
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import ValidationError

from config.settings import config
from scripts.cosmos.cosmos_client import CosmosManagementClient
from scripts.cosmos.cosmos_schemas import (
    CosmosContainerResponse,
    CosmosDatabaseResponse,
)
from scripts.cosmos.exceptions import (
    DatabaseNotFound,
    EnumerationFailed,
    RemoteCallExhausted,
)
from scripts.cosmos.models import (
    ContainerOutcome,
    EnabledContainer,
    EnumerationResult,
    RunResult,
    sort_containers,
)
from scripts.cosmos.reporter import Reporter
from scripts.cosmos.retry import invoke_with_retry
from utils.logging import get_logger

T = TypeVar("T")


class AnalyticalStorageManager:
    """
    Enumerate and disable analytical storage across one Cosmos DB account.

    The remote client is injected, so the same logic runs against the Azure CLI,
    the Azure SDK or a test double.
    """

    def __init__(
        self,
        client: CosmosManagementClient,
        reporter: Reporter | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the manager.

        Args:
            client: Remote management client
            reporter: Reporter for operator-facing output
            max_retries (int): Attempts per remote call (defaults to config.MAX_RETRIES)
            retry_delay (float): Fixed delay between attempts (defaults to config.RETRY_DELAY_SECONDS)
            logger (logging.Logger): Logger (defaults to the tool logger)
        """
        self.client = client
        self.reporter = reporter or Reporter()
        self.max_retries = max_retries if max_retries is not None else config.MAX_RETRIES
        self.retry_delay = (
            retry_delay if retry_delay is not None else config.RETRY_DELAY_SECONDS
        )
        self.logger = logger or get_logger()

    def _call(self, operation: Callable[[], T], description: str) -> T:
        return invoke_with_retry(
            operation,
            max_attempts=self.max_retries,
            delay_seconds=self.retry_delay,
            description=description,
            logger=self.logger,
        )

    # ====================================
    # ENUMERATION
    # ====================================

    def _fetch_databases(self, database_name: str | None) -> list[Any]:
        """
        Fetch the databases to scan.

        Raises:
            DatabaseNotFound: If the named database could not be retrieved
            EnumerationFailed: If the database list could not be retrieved
        """
        if database_name:
            try:
                database = self._call(
                    lambda: self.client.show_database(database_name),
                    f"Show database '{database_name}'",
                )
            except RemoteCallExhausted as e:
                self.logger.error(str(e))
                raise DatabaseNotFound(database_name) from e
            return [database]

        try:
            return self._call(self.client.list_databases, "List databases")
        except RemoteCallExhausted as e:
            self.logger.error(str(e))
            raise EnumerationFailed("Failed to retrieve databases.") from e

    def _database_names(self, databases: list[Any]) -> list[str]:
        """Return database names, skipping entries whose name cannot be resolved."""
        names = []
        for raw in databases:
            try:
                database = CosmosDatabaseResponse.model_validate(raw)
            except ValidationError as e:
                self.logger.warning(f"Skipping invalid database payload: {e}")
                continue

            if not database.name:
                self.logger.warning("Skipping database entry without a name")
                continue
            names.append(database.name)
        return names

    def classify_containers(
        self, database_name: str, containers: list[Any]
    ) -> list[EnabledContainer]:
        """
        Keep the containers of one database that have analytical storage enabled.

        Args:
            database_name: Database owning the containers
            containers: Raw container payloads from list_containers

        Returns:
            list[EnabledContainer]: Enabled containers, in payload order
        """
        enabled = []
        for raw in containers:
            try:
                container = CosmosContainerResponse.model_validate(raw)
            except ValidationError as e:
                self.logger.warning(
                    f"Skipping invalid container payload in {database_name}: {e}"
                )
                continue

            if not container.name:
                self.logger.warning(f"Skipping container without a name in {database_name}")
                continue

            ttl = container.analytical_ttl()
            if ttl is None:
                self.logger.debug(f"{database_name}/{container.name}: analytical storage off")
                continue

            self.logger.debug(f"{database_name}/{container.name}: analytical storage TTL {ttl}")
            enabled.append(
                EnabledContainer(
                    database_name=database_name,
                    container_name=container.name,
                    analytical_ttl=ttl,
                )
            )
        return enabled

    def enumerate_enabled(self, database_name: str | None = None) -> EnumerationResult:
        """
        Find every container with analytical storage enabled.

        Args:
            database_name: Restrict the scan to this database (optional)

        Returns:
            EnumerationResult: Sorted enabled containers plus scan metadata

        Raises:
            DatabaseNotFound: If database_name was given and could not be retrieved
            EnumerationFailed: If no database or container listing succeeded at all
        """
        databases = self._fetch_databases(database_name)
        self.reporter.processing_databases(len(databases))
        self.logger.info(f"Scanning {len(databases)} database(s)")

        names = self._database_names(databases)
        enabled: list[EnabledContainer] = []
        failed_databases: list[str] = []
        container_count = 0

        for name in names:
            try:
                containers = self._call(
                    lambda name=name: self.client.list_containers(name),
                    f"List containers in '{name}'",
                )
            except RemoteCallExhausted as e:
                self.logger.error(f"Failed to retrieve containers for {name}: {e.last_error!s}")
                failed_databases.append(name)
                continue

            container_count += len(containers)
            enabled.extend(self.classify_containers(name, containers))

        if names and len(failed_databases) == len(names):
            raise EnumerationFailed(
                f"Failed to retrieve containers for every database ({len(names)})."
            )

        result = EnumerationResult(
            enabled=sort_containers(enabled),
            database_count=len(names),
            container_count=container_count,
            failed_databases=failed_databases,
        )
        self.logger.info(
            f"Found {len(result.enabled)} container(s) with analytical storage enabled "
            f"out of {container_count} in {len(names)} database(s)"
        )
        return result

    # ====================================
    # BULK DISABLE
    # ====================================

    def disable_all(self, containers: list[EnabledContainer]) -> RunResult:
        """
        Disable analytical storage on every given container, one at a time.

        A container that still fails after all retries is reported and skipped;
        the remaining containers are always attempted.

        Args:
            containers: Confirmed containers to disable

        Returns:
            RunResult: Counts and per-container outcomes, in processing order
        """
        ordered = sort_containers(containers)
        total = len(ordered)
        outcomes: list[ContainerOutcome] = []
        disabled_count = 0

        self.logger.info(f"Starting disable process for {total} containers...")

        for number, container in enumerate(ordered, 1):
            self.logger.info(f"Processing entry {number}/{total}: {container.label}")
            self.reporter.disabling(container)

            try:
                self._call(
                    lambda c=container: self.client.disable_analytical_storage(
                        c.database_name, c.container_name
                    ),
                    f"Disable analytical storage on {container.label}",
                )
            except RemoteCallExhausted as e:
                self.reporter.failed(container)
                self.logger.error(f"Failed to disable {container.label}: {e.last_error!s}")
                outcomes.append(
                    ContainerOutcome(
                        container=container,
                        succeeded=False,
                        error_message=str(e.last_error),
                    )
                )
                continue

            disabled_count += 1
            self.reporter.succeeded(container)
            outcomes.append(ContainerOutcome(container=container, succeeded=True))
            self.logger.info(f"Completed processing {container.label} ({number}/{total})")

        self.logger.info("Finished disable loop")

        return RunResult(
            total_enabled=total,
            disabled_count=disabled_count,
            outcomes=outcomes,
        )
