"""Command-line entry point for slope analysis of KML/KMZ/GeoJSON areas."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from domain.errors import SlopeAnalysisError
from domain.models import AnalysisSettings
from domain.profiles import list_profiles, load_profile
from infrastructure.http.client import validate_tile_source
from services.slope_analysis import SlopeAnalysisService
from shared.constants import DEFAULT_PROFILE_NAME, EXPORT_ARCHIVE_NAME, FillRule
from shared.diagnostics import log_memory_usage, log_thread_status
from terrain.classes import legend

logger = logging.getLogger(__name__)


def setup_logging(log_file: Path | None = None, *, verbose: bool = False) -> None:
    """Configure logging to stdout and optionally to a file."""
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(str(log_file), encoding='utf-8'))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Slope analysis - classify terrain slope inside polygons',
    )
    parser.add_argument(
        'input',
        nargs='?',
        type=Path,
        help='Area of interest: .kml, .kmz or .geojson with Polygon features',
    )
    parser.add_argument(
        '-o',
        '--output',
        type=Path,
        default=Path(EXPORT_ARCHIVE_NAME),
        help=f'Output zip archive or directory (default: {EXPORT_ARCHIVE_NAME})',
    )
    parser.add_argument(
        '--unzipped',
        action='store_true',
        help='Write .tif/.tfw/.prj into the output directory instead of a zip',
    )
    parser.add_argument(
        '-p',
        '--profile',
        default=None,
        help=f'Settings profile name or TOML path (default: {DEFAULT_PROFILE_NAME})',
    )
    parser.add_argument('--zoom', type=int, default=None, help='Tile zoom level')
    parser.add_argument(
        '--fill-rule',
        choices=[r.value for r in FillRule],
        default=None,
        help='Polygon fill rule used for clipping',
    )
    parser.add_argument(
        '--no-cache',
        action='store_true',
        help='Disable the on-disk HTTP tile cache',
    )
    parser.add_argument(
        '--check',
        action='store_true',
        help='Only check that the elevation tile source is reachable',
    )
    parser.add_argument(
        '--list-profiles',
        action='store_true',
        help='List available settings profiles and exit',
    )
    parser.add_argument('--log-file', type=Path, default=None)
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser


def resolve_settings(args: argparse.Namespace) -> AnalysisSettings:
    """Profile settings with command-line overrides applied."""
    if args.profile:
        settings = load_profile(args.profile)
    elif DEFAULT_PROFILE_NAME in list_profiles():
        settings = load_profile(DEFAULT_PROFILE_NAME)
    else:
        settings = AnalysisSettings()

    overrides: dict[str, object] = {}
    if args.zoom is not None:
        overrides['zoom'] = args.zoom
    if args.fill_rule is not None:
        overrides['fill_rule'] = args.fill_rule
    if args.no_cache:
        overrides['use_http_cache'] = False
    if overrides:
        settings = AnalysisSettings.model_validate(
            {**settings.model_dump(), **overrides},
        )
    return settings


def print_report(histogram: list[tuple[str, int]]) -> None:
    total = sum(n for _, n in histogram) or 1
    print('Slope class       Color     Pixels     Share')
    for (label, color), (_, count) in zip(legend(), histogram, strict=True):
        print(f'{label:<16}  {color}  {count:>9}  {100.0 * count / total:6.2f}%')


def _print_status(status: object, message: str) -> None:
    print(f'[{getattr(status, "value", status)}] {message}')


async def run(args: argparse.Namespace, settings: AnalysisSettings) -> int:
    if args.check:
        await validate_tile_source(settings)
        print('Elevation tile source is reachable')
        return 0

    service = SlopeAnalysisService(settings, on_status=_print_status)
    result = await service.analyze_file(args.input)
    out = service.export(args.output, as_zip=not args.unzipped)
    print_report(result.histogram)
    if result.failed_tiles:
        print(f'Warning: {result.failed_tiles} tiles failed and were left at 0')
    print(f'Saved: {out}')
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_file, verbose=args.verbose)

    if args.list_profiles:
        for name in list_profiles():
            print(name)
        return 0
    if args.input is None and not args.check:
        parser.error('input file is required unless --check is given')

    log_memory_usage('startup')
    try:
        settings = resolve_settings(args)
        return asyncio.run(run(args, settings))
    except (SlopeAnalysisError, RuntimeError, FileNotFoundError) as e:
        logger.error('Analysis failed: %s', e)
        print(f'Error: {e}', file=sys.stderr)
        return 1
    except ValueError as e:
        logger.error('Invalid settings: %s', e)
        print(f'Error: {e}', file=sys.stderr)
        return 1
    finally:
        log_thread_status('shutdown')


if __name__ == '__main__':
    sys.exit(main())
