"""Run-level models carried from enumeration through confirmation and disabling."""

from pydantic import BaseModel, ConfigDict, Field


class EnabledContainer(BaseModel):
    """A container found with analytical storage enabled; the unit of work."""

    model_config = ConfigDict(frozen=True)

    database_name: str
    container_name: str
    analytical_ttl: int | str

    @property
    def sort_key(self) -> tuple[str, str]:
        return (self.database_name, self.container_name)

    @property
    def label(self) -> str:
        return f"{self.database_name}/{self.container_name}"


def sort_containers(containers: list[EnabledContainer]) -> list[EnabledContainer]:
    """Sort by (database, container); display order and disable order both use this."""
    return sorted(containers, key=lambda c: c.sort_key)


class EnumerationResult(BaseModel):
    """Enabled containers found during enumeration plus display metadata."""

    enabled: list[EnabledContainer] = Field(default_factory=list)
    database_count: int = 0
    container_count: int = 0
    failed_databases: list[str] = Field(default_factory=list)

    @property
    def enabled_database_count(self) -> int:
        """Number of distinct databases owning at least one enabled container."""
        return len({c.database_name for c in self.enabled})


class ContainerOutcome(BaseModel):
    """Final state of one disable attempt."""

    model_config = ConfigDict(frozen=True)

    container: EnabledContainer
    succeeded: bool
    error_message: str | None = None


class RunResult(BaseModel):
    """Aggregate result of a bulk disable run."""

    total_enabled: int
    disabled_count: int
    outcomes: list[ContainerOutcome] = Field(default_factory=list)

    @property
    def failed(self) -> list[ContainerOutcome]:
        return [o for o in self.outcomes if not o.succeeded]
