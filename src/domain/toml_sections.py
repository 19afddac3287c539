"""Mapping layer between flat AnalysisSettings fields and sectioned TOML format.

AnalysisSettings remains a flat Pydantic model. This module provides two functions:
- flat_to_sectioned(): flat dict → sectioned dict (for TOML save)
- sectioned_to_flat(): sectioned dict → flat dict (for TOML load)
"""

from __future__ import annotations

# {section_name: {flat_field_name: short_name_in_toml}}
SECTION_MAP: dict[str, dict[str, str]] = {
    'tiles': {
        'zoom': 'zoom',
        'tile_size': 'size',
        'tile_url_template': 'url_template',
    },
    'http': {
        'concurrency': 'concurrency',
        'timeout_s': 'timeout_s',
        'retries': 'retries',
        'backoff_factor': 'backoff_factor',
        'use_http_cache': 'use_cache',
    },
    'slope': {
        'nodata_threshold': 'nodata_threshold',
        'overlay_alpha': 'overlay_alpha',
    },
    'clip': {
        'fill_rule': 'fill_rule',
    },
}

# Reverse index: flat_field → (section, short_name)
_FLAT_TO_SECTION: dict[str, tuple[str, str]] = {}
for _section, _fields in SECTION_MAP.items():
    for _flat, _short in _fields.items():
        _FLAT_TO_SECTION[_flat] = (_section, _short)

# Reverse index: (section, short_name) → flat_field
_SECTION_TO_FLAT: dict[str, dict[str, str]] = {}
for _section, _fields in SECTION_MAP.items():
    _SECTION_TO_FLAT[_section] = {v: k for k, v in _fields.items()}


def flat_to_sectioned(flat: dict) -> dict:
    """Convert flat AnalysisSettings dict to sectioned dict for TOML output."""
    result: dict = {}
    for key, value in flat.items():
        if key in _FLAT_TO_SECTION:
            section, short_name = _FLAT_TO_SECTION[key]
            result.setdefault(section, {})[short_name] = value
        else:
            result.setdefault('common', {})[key] = value
    return result


def sectioned_to_flat(data: dict) -> dict:
    """Convert sectioned TOML dict to flat dict for AnalysisSettings validation."""
    flat: dict = {}
    for key, value in data.items():
        if isinstance(value, dict) and key in _SECTION_TO_FLAT:
            mapping = _SECTION_TO_FLAT[key]
            for short_name, field_value in value.items():
                flat[mapping.get(short_name, short_name)] = field_value
        elif isinstance(value, dict) and key == 'common':
            flat.update(value)
        elif isinstance(value, dict):
            # Unknown section: flatten as-is, pydantic ignores extras
            flat.update(value)
        else:
            # Top-level scalar (old flat profile format)
            flat[key] = value
    return flat
