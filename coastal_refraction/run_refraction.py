"""
Coastal Refraction Runner

Builds a configuration from command-line flags, runs the model and prints
the result summary.

Usage:
    python -m coastal_refraction.run_refraction
    python -m coastal_refraction.run_refraction --alpha0 20 --period 10
    python -m coastal_refraction.run_refraction --wavelength 120 --method finite_difference
    python -m coastal_refraction.run_refraction --inspect 280 150 --json
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from .config import DIRECTION_METHODS, RefractionConfig
from .runner.refraction_runner import RefractionRunner

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    defaults = RefractionConfig()
    parser = argparse.ArgumentParser(description='Run the coastal wave refraction model')

    domain = parser.add_argument_group('domain')
    domain.add_argument('--width', type=float, default=defaults.domain_width_m,
                        help=f'Domain width (m, default: {defaults.domain_width_m:g})')
    domain.add_argument('--height', type=float, default=defaults.domain_height_m,
                        help=f'Domain height (m, default: {defaults.domain_height_m:g})')
    domain.add_argument('--grid-x', type=int, default=defaults.grid_x,
                        help=f'Grid columns (default: {defaults.grid_x})')
    domain.add_argument('--grid-y', type=int, default=defaults.grid_y,
                        help=f'Grid rows (default: {defaults.grid_y})')
    domain.add_argument('--slope', type=float, default=defaults.slope,
                        help=f'Bottom slope (default: {defaults.slope:g})')

    coast = parser.add_argument_group('coastline')
    coast.add_argument('--bay-depth', type=float, default=defaults.bay_depth_m)
    coast.add_argument('--bay-width', type=float, default=defaults.bay_width_m)
    coast.add_argument('--cape-extension', type=float, default=defaults.cape_extension_m)
    coast.add_argument('--cape-width', type=float, default=defaults.cape_width_m)

    wave = parser.add_argument_group('incident wave')
    wave.add_argument('--alpha0', type=float, default=defaults.alpha0_deg,
                      help='Deep water angle from the shore normal (degrees, default: 0)')
    wave.add_argument('--wave-height', type=float, default=defaults.wave_height_m,
                      help=f'Wave height at the reference depth (m, default: {defaults.wave_height_m:g})')
    period = wave.add_mutually_exclusive_group()
    period.add_argument('--period', type=float, default=None,
                        help=f'Wave period (s, default: {defaults.period_s:g})')
    period.add_argument('--wavelength', type=float, default=None,
                        help='Wavelength (m), instead of the period')
    wave.add_argument('--depth', type=float, default=defaults.reference_depth_m,
                      help=f'Reference depth (m, default: {defaults.reference_depth_m:g})')

    parser.add_argument('--method', choices=DIRECTION_METHODS, default=defaults.direction_method,
                        help='Direction field algorithm (default: snell)')
    parser.add_argument('--rays', type=int, default=defaults.ray_count,
                        help=f'Number of rays (default: {defaults.ray_count})')
    parser.add_argument('--wavefronts', type=int, default=defaults.wavefront_count,
                        help=f'Number of wavefronts (default: {defaults.wavefront_count})')
    parser.add_argument('--inspect', type=float, nargs=2, metavar=('X', 'Y'), default=None,
                        help='Print the wave state nearest to this point')
    parser.add_argument('--json', action='store_true',
                        help='Print the configuration and dispersion result as JSON')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    return parser


def config_from_args(args: argparse.Namespace) -> RefractionConfig:
    return RefractionConfig(
        domain_width_m=args.width,
        domain_height_m=args.height,
        grid_x=args.grid_x,
        grid_y=args.grid_y,
        slope=args.slope,
        bay_depth_m=args.bay_depth,
        bay_width_m=args.bay_width,
        cape_extension_m=args.cape_extension,
        cape_width_m=args.cape_width,
        alpha0_deg=args.alpha0,
        wave_height_m=args.wave_height,
        period_s=args.period,
        wavelength_m=args.wavelength,
        reference_depth_m=args.depth,
        direction_method=args.method,
        ray_count=args.rays,
        wavefront_count=args.wavefronts,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = config_from_args(args).validate()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    result = RefractionRunner(config).run()

    if args.json:
        print(json.dumps({
            'config': config.to_dict(),
            'dispersion': result.dispersion.to_dict(),
            'features': [f.to_dict() for f in result.features],
        }, indent=2))
    else:
        print(result.summary())

    if args.inspect is not None:
        x, y = args.inspect
        inspection = result.inspect_point(x, y)
        if inspection is None:
            logger.warning(f"Point ({x:g}, {y:g}) is outside the domain")
        else:
            p = inspection.point
            print(
                f"Point ({p.x:.1f}, {p.y:.1f}): h={p.h:.2f}m, k={p.k:.4f}, "
                f"c={p.c:.2f}m/s, angle={inspection.alpha_deg:.1f}°, "
                f"H={inspection.wave_height:.2f}m, "
                f"{inspection.distance_to_coast:.1f}m from the coast"
                + (" (breaking)" if inspection.is_breaking else "")
            )

    return 0


if __name__ == "__main__":
    sys.exit(main())
