"""Typed failures surfaced at the analysis request boundary."""


class SlopeAnalysisError(Exception):
    """Base class for failures that halt an analysis request."""


class NoElevationDataError(SlopeAnalysisError):
    def __init__(self, msg: str = 'no elevation data available') -> None:
        super().__init__(msg)


class NoPolygonGeometryError(SlopeAnalysisError):
    def __init__(self, msg: str = 'No Polygon layer detected') -> None:
        super().__init__(msg)


class InvalidVectorFileError(SlopeAnalysisError):
    """Malformed KML/KMZ input."""


class StaleRequestError(SlopeAnalysisError):
    """A newer analysis request superseded this one."""

    def __init__(self, generation: int, current: int) -> None:
        super().__init__(
            f'analysis #{generation} superseded by #{current}',
        )
        self.generation = generation
        self.current = current


class GeometryValidationError(SlopeAnalysisError, ValueError):
    """Degenerate drawn geometry, rejected before analysis."""
