"""Packaging of an ExportArtifact into sidecar files or a zip archive."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import TYPE_CHECKING

from shared.constants import EXPORT_STEM

if TYPE_CHECKING:
    from export.encoder import ExportArtifact

logger = logging.getLogger(__name__)


def bundle_members(
    artifact: ExportArtifact,
    stem: str = EXPORT_STEM,
) -> dict[str, bytes]:
    """{file name: content} of the image, world file and projection."""
    return {
        f'{stem}.tif': artifact.image_bytes,
        f'{stem}.tfw': artifact.world_file.encode('ascii'),
        f'{stem}.prj': artifact.projection.encode('ascii'),
    }


def write_bundle(
    artifact: ExportArtifact,
    path: str | Path,
    stem: str = EXPORT_STEM,
) -> Path:
    """Write the zip archive and return its path."""
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(out, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in bundle_members(artifact, stem).items():
            zf.writestr(name, data)
    logger.info('Export bundle written: %s', out)
    return out


def write_files(
    artifact: ExportArtifact,
    directory: str | Path,
    stem: str = EXPORT_STEM,
) -> list[Path]:
    """Write the three files unzipped into directory."""
    folder = Path(directory)
    folder.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for name, data in bundle_members(artifact, stem).items():
        p = folder / name
        p.write_bytes(data)
        written.append(p)
    logger.info('Export files written to %s', folder)
    return written
