"""Georeferenced export - image encoding, world file, projection, bundles."""

from export.bundle import bundle_members, write_bundle, write_files
from export.encoder import (
    ExportArtifact,
    encode,
    encode_image,
    world_file_affine,
    world_file_text,
)

__all__ = [
    'ExportArtifact',
    'bundle_members',
    'encode',
    'encode_image',
    'world_file_affine',
    'world_file_text',
    'write_bundle',
    'write_files',
]
