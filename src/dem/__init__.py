# Elevation mosaic assembly
from dem.mosaic import Mosaic, MosaicAssembler, mosaic_bounds, stitch_tiles

__all__ = [
    'Mosaic',
    'MosaicAssembler',
    'mosaic_bounds',
    'stitch_tiles',
]
