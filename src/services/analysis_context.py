"""Analysis context - immutable state passed between pipeline steps."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import numpy as np

    from dem.mosaic import Mosaic
    from domain.geometry import FeatureCollection
    from domain.models import AnalysisSettings, GeoBoundingBox
    from export.encoder import ExportArtifact
    from terrain.slope import SlopeRaster


@dataclass(frozen=True)
class AnalysisContext:
    """
    Snapshot of one analysis request.

    Each pipeline step returns a new context via advance() with its own
    product filled in; earlier products are never mutated.
    """

    generation: int
    settings: AnalysisSettings
    features: FeatureCollection
    bbox: GeoBoundingBox

    mosaic: Mosaic | None = None
    raster: SlopeRaster | None = None
    clipped: np.ndarray | None = None
    mask: np.ndarray | None = None
    artifact: ExportArtifact | None = None

    def advance(self, **products: Any) -> AnalysisContext:
        return dataclasses.replace(self, **products)


@dataclass(frozen=True)
class AnalysisResult:
    """Products of a completed analysis."""

    generation: int
    bbox: GeoBoundingBox
    mosaic: Mosaic
    raster: SlopeRaster
    clipped: np.ndarray
    mask: np.ndarray
    artifact: ExportArtifact
    histogram: list[tuple[str, int]] = field(default_factory=list)
    elapsed_s: float = 0.0

    @property
    def failed_tiles(self) -> int:
        return len(self.mosaic.failed_tiles)

    @classmethod
    def from_context(
        cls,
        ctx: AnalysisContext,
        histogram: list[tuple[str, int]],
        elapsed_s: float,
    ) -> AnalysisResult:
        if (
            ctx.mosaic is None
            or ctx.raster is None
            or ctx.clipped is None
            or ctx.mask is None
            or ctx.artifact is None
        ):
            msg = f'analysis #{ctx.generation} is incomplete'
            raise ValueError(msg)
        return cls(
            generation=ctx.generation,
            bbox=ctx.bbox,
            mosaic=ctx.mosaic,
            raster=ctx.raster,
            clipped=ctx.clipped,
            mask=ctx.mask,
            artifact=ctx.artifact,
            histogram=histogram,
            elapsed_s=elapsed_s,
        )
