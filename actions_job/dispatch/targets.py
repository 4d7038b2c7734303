"""Resolve the project and region a job is dispatched to."""

from __future__ import annotations

import typing as typ

from actions_job.cloudrun.errors import MetadataError
from actions_job.logging import get_logger, log_warning

from .errors import LabelValidationError
from .models import JobTarget

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .labels import LabeledOptions

logger = get_logger(__name__)


class MetadataLookup(typ.Protocol):
    """Source of the hosting project and region."""

    async def project_id(self) -> str:
        """Return the hosting project."""
        ...

    async def region(self) -> str:
        """Return the hosting region."""
        ...


class TargetResolver:
    """Derive a :class:`JobTarget` from labels, defaults and metadata.

    Each field falls back from the label value, to the configured default,
    to the metadata server when one is supplied. Metadata answers describe
    the hosting instance and are looked up at most once per resolver.
    """

    def __init__(
        self,
        *,
        default_project: str | None = None,
        default_region: str | None = None,
        metadata: MetadataLookup | None = None,
    ) -> None:
        """Store the fallbacks used when labels leave a field unset."""
        self._default_project = default_project
        self._default_region = default_region
        self._metadata = metadata
        self._metadata_values: dict[str, str] = {}

    async def resolve(self, options: LabeledOptions) -> JobTarget:
        """Return the project and region selected for ``options``.

        Raises
        ------
        LabelValidationError
            If the project or region cannot be resolved.

        """
        project = options.project or self._default_project
        if not project:
            project = await self._from_metadata("project", self._lookup_project)
        region = options.region or self._default_region
        if not region:
            region = await self._from_metadata("region", self._lookup_region)
        return JobTarget(project=project, region=region)

    async def _lookup_project(self, metadata: MetadataLookup) -> str:
        return await metadata.project_id()

    async def _lookup_region(self, metadata: MetadataLookup) -> str:
        return await metadata.region()

    async def _from_metadata(
        self,
        field: str,
        lookup: cabc.Callable[[MetadataLookup], cabc.Awaitable[str]],
    ) -> str:
        if field in self._metadata_values:
            return self._metadata_values[field]
        if self._metadata is None:
            raise LabelValidationError.unresolved_target(field)
        try:
            value = await lookup(self._metadata)
        except MetadataError as exc:
            log_warning(logger, "Metadata lookup for %s failed: %s", field, exc)
            raise LabelValidationError.unresolved_target(field) from exc
        if not value:
            raise LabelValidationError.unresolved_target(field)
        self._metadata_values[field] = value
        return value
