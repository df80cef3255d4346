"""Pydantic schemas for validating Cosmos DB management responses.

Both remote backends (the `az` CLI and the Azure SDK) hand back payloads in the
shape `az cosmosdb sql ... --output json` produces. These schemas validate that
shape and hold the analytical storage classification rule.
"""

from pydantic import BaseModel, Field

# Values of analyticalStorageTtl that mean "analytical storage is off"
DISABLED_TTL_VALUES = (0, "0")


def resolve_analytical_ttl(container: dict) -> int | str | None:
    """Resolve a container's analytical storage TTL, or None if it is disabled.

    Depending on the API version, the property is reported either at the top
    level of the container payload or nested under ``resource``. The top-level
    location is checked first and the first present (non-null) value wins. A
    winning value of 0 means analytical storage is off.

    Args:
        container: Raw container payload

    Returns:
        The TTL when analytical storage is enabled (e.g. 30, -1), otherwise None
    """
    resource = container.get("resource") or {}
    candidates = (
        container.get("analyticalStorageTtl"),
        resource.get("analyticalStorageTtl") if isinstance(resource, dict) else None,
    )

    for value in candidates:
        if value is None:
            continue
        if value in DISABLED_TTL_VALUES:
            return None
        return value

    return None


class CosmosDatabaseResponse(BaseModel):
    """Schema for a SQL database returned by `database list` / `database show`."""

    name: str | None = Field(default=None, description="Database name")
    id: str | None = Field(default=None, description="ARM resource id")


class CosmosContainerResource(BaseModel):
    """Schema for the nested ``resource`` block of a SQL container."""

    id: str | None = Field(default=None, description="Container id")
    analyticalStorageTtl: int | str | None = Field(
        default=None, description="Analytical store TTL in seconds (-1 = forever)"
    )


class CosmosContainerResponse(BaseModel):
    """Schema for a SQL container returned by `container list`.

    Ensures the container name and both candidate locations of the analytical
    storage TTL are well-typed before classification.
    """

    name: str | None = Field(default=None, description="Container name")
    analyticalStorageTtl: int | str | None = Field(
        default=None, description="Top-level analytical store TTL (older API shape)"
    )
    resource: CosmosContainerResource | None = Field(
        default=None, description="Nested resource properties"
    )

    def analytical_ttl(self) -> int | str | None:
        """Return the resolved TTL when analytical storage is enabled, else None."""
        return resolve_analytical_ttl(self.model_dump())

    def is_analytical_storage_enabled(self) -> bool:
        return self.analytical_ttl() is not None
