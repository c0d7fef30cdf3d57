"""
Command line entry point: ``python -m stovesim``.
"""

import argparse
import logging
import sys

from .app import run_headless
from .settings import SimulationSettings, load_settings, save_settings


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="stovesim",
        description="Headless stove-top heat conduction simulation.",
    )
    parser.add_argument('--settings', default='', help='JSON settings file')
    parser.add_argument('--ticks', type=int, default=100, help='Display ticks to simulate (default: 100)')
    parser.add_argument('--threads', type=int, default=None, help='Worker threads, 0/1 = sequential')
    parser.add_argument('--material', default=None, help='Top-plate preset (silver, copper, iron, quartz, brick, glass)')
    parser.add_argument('--watts', type=float, default=None, help='Burner wattage')
    parser.add_argument('--source-off', action='store_true', help='Run with the burner unpowered')
    parser.add_argument('--out', default=None, help='Output directory for frames and the final plot')
    parser.add_argument('--save-settings', default='', help='Write the effective settings to this file')
    parser.add_argument('--log-level', default='INFO', help='Logging level (default: INFO)')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings(args.settings) if args.settings else SimulationSettings()
    if args.threads is not None:
        settings.threads = args.threads
    if args.material is not None:
        settings.material = args.material
    if args.watts is not None:
        settings.watts = args.watts
    if args.source_off:
        settings.source_on = False
    if args.out is not None:
        settings.output_dir = args.out

    if args.save_settings:
        save_settings(settings, args.save_settings)

    try:
        summary = run_headless(settings, ticks=args.ticks)
    except (ValueError, FileNotFoundError) as e:
        logging.getLogger("stovesim").error("[StoveSim] %s", e)
        return 2

    if not summary.started:
        return 1
    print(
        f"t={summary.simulated_time:.1f}s steps={summary.steps} "
        f"max_plate={summary.max_surface:.2f}C max_burner={summary.max_source:.2f}C"
    )
    if summary.plot_path:
        print(f"plot: {summary.plot_path}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
