"""
Command line interface for PyOrgan.

Examples:
    pyorgan info
    pyorgan realize --subtype 1 --count 5 --seed 42
    pyorgan successors params.xml --subtype 1 --draws 10000 --position 0 0 -5
"""
import argparse
import logging
import random
import sys
from collections import Counter
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from .config_loader import load_parameter_sets
from .exceptions import OrganError, SubtypeNotFoundError
from .logging_config import setup_logging
from .parameters import OrganParameterSet

console = Console()


def _select(parameter_sets: List[OrganParameterSet], subtype: int) -> OrganParameterSet:
    for parameter_set in parameter_sets:
        if parameter_set.subtype == subtype:
            return parameter_set
    organ_type = parameter_sets[0].organ_type if parameter_sets else 'organ'
    raise SubtypeNotFoundError(organ_type, subtype)


def _format_trait(trait) -> str:
    return f"{trait.mean:g} ± {trait.sd:g}"


def cmd_info(args: argparse.Namespace) -> int:
    parameter_sets = load_parameter_sets(args.file)
    table = Table(title="Organ Parameter Sets", show_header=True)
    table.add_column("Type", style="cyan")
    table.add_column("Subtype", justify="right")
    table.add_column("Name")
    table.add_column("Basal [cm]", justify="right")
    table.add_column("Apical [cm]", justify="right")
    table.add_column("Spacing [cm]", justify="right")
    table.add_column("Shape")
    table.add_column("Branches", justify="right")
    table.add_column("Successors")
    table.add_column("Est. max length [cm]", style="green", justify="right")
    for p in parameter_sets:
        successors = ", ".join(f"{t}:{w:g}" for t, w in zip(p.successor_types, p.successor_weights))
        table.add_row(
            p.organ_type, str(p.subtype), p.name,
            _format_trait(p.basal_zone), _format_trait(p.apical_zone),
            _format_trait(p.spacing), p.spacing_shape.label,
            _format_trait(p.branch_count), successors or "-",
            f"{p.expected_maximal_length():.3f}",
        )
    console.print(table)
    return 0


def cmd_realize(args: argparse.Namespace) -> int:
    parameter_set = _select(load_parameter_sets(args.file), args.subtype)
    rng = random.Random(args.seed)
    table = Table(title=f"Realized {parameter_set.organ_type} subtype {parameter_set.subtype}",
                  show_header=True)
    table.add_column("#", justify="right")
    table.add_column("Basal", justify="right")
    table.add_column("Apical", justify="right")
    table.add_column("Branches", justify="right")
    table.add_column("Inter-lateral distances")
    table.add_column("Rate", justify="right")
    table.add_column("Radius", justify="right")
    table.add_column("Angle", justify="right")
    table.add_column("Max length", style="green", justify="right")
    for i in range(args.count):
        organ = parameter_set.realize(rng)
        distances = " ".join(f"{d:.2f}" for d in organ.inter_lateral_distances)
        table.add_row(
            str(i + 1), f"{organ.basal_length:.3f}", f"{organ.apical_length:.3f}",
            str(organ.branch_count), distances or "-", f"{organ.growth_rate:.3f}",
            f"{organ.radius:.3f}", f"{organ.insertion_angle:.3f}",
            f"{organ.maximal_length():.3f}",
        )
    console.print(table)
    console.print(f"Expected maximal length: {parameter_set.expected_maximal_length():.3f} cm")
    return 0


def cmd_successors(args: argparse.Namespace) -> int:
    parameter_set = _select(load_parameter_sets(args.file), args.subtype)
    rng = random.Random(args.seed)
    counts = Counter(
        parameter_set.choose_successor_type(args.position, rng) for _ in range(args.draws)
    )
    table = Table(title=f"Successors of subtype {parameter_set.subtype} ({args.draws} draws)",
                  show_header=True)
    table.add_column("Successor", style="cyan")
    table.add_column("Configured", justify="right")
    table.add_column("Observed", style="green", justify="right")
    configured = dict(zip(parameter_set.successor_types, parameter_set.successor_weights))
    total_weight = sum(configured.values())
    for subtype in list(parameter_set.successor_types) + [None]:
        if subtype is None and counts[None] == 0:
            continue
        expected = "-" if subtype is None or total_weight == 0 else f"{configured[subtype] / total_weight:.3f}"
        table.add_row("none" if subtype is None else str(subtype), expected,
                      f"{counts[subtype] / args.draws:.3f}")
    console.print(table)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyorgan",
        description="Realize organs from statistical organ parameter sets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    info = subparsers.add_parser("info", help="List the parameter sets of a file")
    info.add_argument("file", nargs="?", type=Path, help="Parameter file (default: bundled)")
    info.set_defaults(func=cmd_info)

    realize = subparsers.add_parser("realize", help="Realize organ instances")
    realize.add_argument("file", nargs="?", type=Path, help="Parameter file (default: bundled)")
    realize.add_argument("--subtype", type=int, default=1, help="Subtype to realize")
    realize.add_argument("-n", "--count", type=int, default=5, help="Number of instances")
    realize.add_argument("--seed", type=int, default=None, help="Random seed")
    realize.set_defaults(func=cmd_realize)

    successors = subparsers.add_parser("successors", help="Dice successor types")
    successors.add_argument("file", nargs="?", type=Path, help="Parameter file (default: bundled)")
    successors.add_argument("--subtype", type=int, default=1, help="Parent subtype")
    successors.add_argument("--draws", type=int, default=10000, help="Number of draws")
    successors.add_argument("--seed", type=int, default=None, help="Random seed")
    successors.add_argument("--position", type=float, nargs=3, default=[0.0, 0.0, 0.0],
                            metavar=("X", "Y", "Z"), help="Branch point position")
    successors.set_defaults(func=cmd_successors)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point of the pyorgan command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    try:
        return args.func(args)
    except OrganError as e:
        console.print(f"[red]Error:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
