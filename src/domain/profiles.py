from __future__ import annotations

import logging
import os
from pathlib import Path

import tomlkit

from domain.models import AnalysisSettings
from domain.toml_sections import flat_to_sectioned, sectioned_to_flat
from shared.constants import PROFILES_DIR

logger = logging.getLogger(__name__)


def _user_profiles_dir() -> Path:
    """
    Determine profiles directory.

    1) <project_root>/configs/profiles if it exists (run-from-repo setups).
    2) Otherwise $SLOPE_ANALYSIS_HOME/configs/profiles, falling back to
       ~/.slope_analysis/configs/profiles.
    """
    project_root = Path(__file__).resolve().parent.parent.parent
    local_profiles = project_root / PROFILES_DIR
    if local_profiles.exists():
        return local_profiles

    home = os.getenv('SLOPE_ANALYSIS_HOME')
    base = Path(home) if home else Path.home() / '.slope_analysis'
    return base / PROFILES_DIR


def ensure_profiles_dir(profiles_dir: Path | None = None) -> Path:
    folder = profiles_dir or _user_profiles_dir()
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def list_profiles(profiles_dir: Path | None = None) -> list[str]:
    """Profile names without extension."""
    folder = ensure_profiles_dir(profiles_dir)
    return sorted(p.stem for p in folder.glob('*.toml') if p.is_file())


def profile_path(name: str, profiles_dir: Path | None = None) -> Path:
    return ensure_profiles_dir(profiles_dir) / f'{name}.toml'


def load_profile(
    name_or_path: str,
    profiles_dir: Path | None = None,
) -> AnalysisSettings:
    """
    Load and validate a TOML profile into AnalysisSettings.

    Accepts either a profile name (without .toml) from the profiles directory
    or a path to a TOML file.
    """
    p = Path(name_or_path)
    path = (
        p
        if p.suffix.lower() == '.toml' and p.exists()
        else profile_path(name_or_path, profiles_dir)
    )
    if not path.exists():
        msg = f'Profile not found: {path}'
        raise FileNotFoundError(msg)
    data = tomlkit.parse(path.read_text(encoding='utf-8')).unwrap()
    settings = AnalysisSettings.model_validate(sectioned_to_flat(data))
    logger.info(
        'Profile %s loaded: zoom=%s concurrency=%s fill_rule=%s',
        path.name,
        settings.zoom,
        settings.concurrency,
        settings.fill_rule.value,
    )
    return settings


def save_profile(
    name: str,
    settings: AnalysisSettings,
    profiles_dir: Path | None = None,
) -> Path:
    """Save profile to TOML (no atomic write, no backups)."""
    path = profile_path(name, profiles_dir)
    data = flat_to_sectioned(settings.model_dump(mode='json'))
    path.write_text(tomlkit.dumps(data), encoding='utf-8')
    return path


def delete_profile(name: str, profiles_dir: Path | None = None) -> None:
    path = profile_path(name, profiles_dir)
    if path.exists():
        path.unlink()
