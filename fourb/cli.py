"""Command-line interface for fourb.

Provides subcommands for scoring capture exports:

    fourb score ik.csv me.csv --output session.json
    fourb score https://host/ik.csv.gz https://host/me.csv.gz --config thresholds.yaml
    fourb score ik.csv me.csv --csv ./tables --plot profile.png
    fourb info session.json
    fourb defaults -o thresholds.yaml
"""

import argparse
import logging
import sys
import time
from importlib.metadata import version as pkg_version, PackageNotFoundError


def _get_version() -> str:
    """Return package version without importing the full fourb package."""
    try:
        return pkg_version("fourb")
    except PackageNotFoundError:
        return "0.0.0+local"


def _setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _print_record(record: dict):
    print(f"Composite: {record['composite_score']} ({record['grade']})")
    print(
        f"  Brain {record['brain_score']}  Body {record['body_score']}  "
        f"Bat {record['bat_score']}  Ball {record['ball_score']}"
    )
    print(f"  Weakest link: {record['weakest_link']}")
    print(
        f"  Flow: ground {record['ground_flow_score']}, core {record['core_flow_score']}, "
        f"upper {record['upper_flow_score']}"
    )
    print(f"  Consistency CV: {record['consistency_cv']}% ({record['consistency_grade']})")
    leak = record.get("leak") or {}
    if leak.get("type") and leak["type"] != "unknown":
        print(f"  Leak: {leak['type']}: {leak['caption']}")
    diag = record.get("diagnostics") or {}
    if diag:
        print(f"  Swings: {diag.get('swing_count', 0)} scored, {diag.get('skipped_swings', 0)} skipped")
        if diag.get("window_confidence"):
            print(f"  Window confidence: {', '.join(diag['window_confidence'])}")
        if diag.get("degraded"):
            print("  WARNING: no swing could be scored; neutral default returned")


def cmd_score(args):
    """Score a capture from its kinematics and energy exports."""
    from . import (
        build_threshold_config,
        export_csv,
        fetch_capture_pair,
        load_config,
        retry_with_backoff,
        save_session,
        score_capture_csv,
    )

    config = load_config(args.config) if args.config else build_threshold_config()

    t0 = time.time()
    kin_payload, energy_payload = retry_with_backoff(
        lambda: fetch_capture_pair(args.kinematics, args.energy),
        max_attempts=args.retries,
        base_delay=args.retry_delay,
    )
    record = score_capture_csv(kin_payload, energy_payload, config)
    elapsed = time.time() - t0

    _print_record(record)
    print(f"Scored in {elapsed:.2f}s")

    if args.output:
        save_session(record, args.output)
        print(f"Saved to {args.output}")

    if args.csv:
        files = export_csv(record, args.csv)
        print(f"CSV: {len(files)} files in {args.csv}")

    if args.plot:
        from .plotting import plot_4b_profile
        import matplotlib.pyplot as plt

        fig = plot_4b_profile(record)
        fig.savefig(args.plot, dpi=150, bbox_inches="tight")
        plt.close(fig)
        print(f"Plot: {args.plot}")


def cmd_info(args):
    """Display a saved session record."""
    from . import load_session

    record = load_session(args.json_file)
    _print_record(record)
    print(
        f"  Pelvis {record['pelvis_velocity']} deg/s, torso {record['torso_velocity']} deg/s, "
        f"X-factor {record['x_factor']} deg"
    )
    print(f"  Bat KE {record['bat_ke']} J, transfer {record['transfer_efficiency']}%")


def cmd_defaults(args):
    """Print or save the default engine configuration."""
    from . import DEFAULT_CONFIG, save_config

    if args.output:
        save_config(DEFAULT_CONFIG, args.output)
        print(f"Saved to {args.output}")
    else:
        import yaml

        print(yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False), end="")


def main():
    parser = argparse.ArgumentParser(
        prog="fourb",
        description="4B swing scoring from motion-capture exports",
    )
    parser.add_argument("--version", action="version", version=f"fourb {_get_version()}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # score
    p_score = sub.add_parser("score", help="Score a capture (kinematics + energy CSV)")
    p_score.add_argument("kinematics", help="Inverse-kinematics CSV (path or http(s) URL)")
    p_score.add_argument("energy", help="Momentum/energy CSV (path or http(s) URL)")
    p_score.add_argument("--config", help="Config file (JSON/YAML)")
    p_score.add_argument("-o", "--output", help="Output session JSON path")
    p_score.add_argument("--csv", metavar="DIR", help="Export summary/swing CSV files to DIR")
    p_score.add_argument("--plot", metavar="PNG", help="Save the 4B profile figure")
    p_score.add_argument("--retries", type=int, default=1, help="Fetch attempts (default: 1)")
    p_score.add_argument("--retry-delay", type=float, default=2.0,
                         help="Initial retry delay in seconds (default: 2.0)")
    p_score.set_defaults(func=cmd_score)

    # info
    p_info = sub.add_parser("info", help="Show a saved session JSON")
    p_info.add_argument("json_file", help="Path to session JSON file")
    p_info.set_defaults(func=cmd_info)

    # defaults
    p_defaults = sub.add_parser("defaults", help="Print or save the default config")
    p_defaults.add_argument("-o", "--output", help="Write to a JSON/YAML file instead of stdout")
    p_defaults.set_defaults(func=cmd_defaults)

    args = parser.parse_args()

    _setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    from .sources import UpstreamFetchError

    try:
        args.func(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except UpstreamFetchError as e:
        print(f"Fetch failed: {e}", file=sys.stderr)
        sys.exit(1)
    except ImportError as e:
        print(f"Missing dependency: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
