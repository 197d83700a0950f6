from __future__ import annotations

import argparse
import logging
import sys
from importlib import metadata
from typing import List, Sequence

from palety_core.capacity import utilization_percent
from palety_core.limits import evaluate
from palety_core.models import Pallet
from palety_core.settings import load_settings
from palety_core.summary import PalletSummary, summarize
from palety_core.units import format_float, format_height, format_weight

from .service.http_client import HttpPlanningService
from .service.planning import PlanningServiceError, PlanOptions

logger = logging.getLogger("palety_app")


def _get_app_version() -> str:
    try:
        return metadata.version("palety")
    except metadata.PackageNotFoundError:
        return "dev"


def _pallet_line(pallet: Pallet) -> str:
    status = "closed" if pallet.is_closed else "open"
    colors = ", ".join(pallet.colors) or "-"
    report = evaluate(pallet.weight, pallet.height, pallet.max_weight, pallet.max_height)
    load = format_float(
        utilization_percent(pallet.weight, pallet.height, pallet.max_weight, pallet.max_height), 0
    )
    flag = "!" if report.warn_weight or report.warn_height else ""
    return (
        f"{pallet.number or pallet.id:<14} {pallet.destination.label:<14} {status:<7} "
        f"{pallet.piece_count:>5} pcs  {format_weight(pallet.weight):>10}  "
        f"{format_height(pallet.height):>8}  {load:>4}%{flag}  {colors}"
    )


def _summary_lines(summary: PalletSummary) -> List[str]:
    lines = [
        f"Pallets: {summary.pallet_count}",
        f"Pieces: {summary.total_pieces}",
        f"Total weight: {format_weight(summary.total_weight)}",
        f"Average height: {format_height(summary.average_height)}",
        f"Weight utilization: {format_float(summary.weight_utilization, 1)}%",
        f"Height utilization: {format_float(summary.height_utilization, 1)}%",
    ]
    for destination, totals in summary.by_destination.items():
        lines.append(
            f"  {destination.label}: {totals.pallet_count} pallets, "
            f"{totals.pieces} pcs, {format_weight(totals.weight)}"
        )
    return lines


def _cmd_summary(service: HttpPlanningService, args: argparse.Namespace) -> int:
    pallets = service.fetch_pallets(args.order_id)
    for pallet in pallets:
        print(_pallet_line(pallet))
    if pallets:
        print()
    print("\n".join(_summary_lines(summarize(pallets))))
    return 0


def _cmd_plan(service: HttpPlanningService, args: argparse.Namespace) -> int:
    settings = load_settings()
    options = PlanOptions(
        max_weight=args.max_weight or settings.max_weight_kg,
        max_height=args.max_height or settings.max_height_mm,
        max_pieces_per_pallet=args.max_pieces,
        thickness=args.thickness or settings.default_thickness_mm,
        strategy=args.strategy,
    )
    result = service.plan_pallets(args.order_id, options)
    if not result.success:
        print(f"Planning failed: {result.reason}", file=sys.stderr)
        return 1
    print(result.reason or "Pallets planned")
    for key, value in result.stats.items():
        print(f"  {key}: {value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="palety", description="Pallet planning client")
    parser.add_argument("--version", action="version", version=_get_app_version())
    parser.add_argument("--api", help="planning service base URL")
    parser.add_argument("-v", "--verbose", action="store_true")
    commands = parser.add_subparsers(dest="command", required=True)

    summary = commands.add_parser("summary", help="list pallets of an order")
    summary.add_argument("order_id", type=int)
    summary.set_defaults(handler=_cmd_summary)

    plan = commands.add_parser("plan", help="let the service plan pallets for an order")
    plan.add_argument("order_id", type=int)
    plan.add_argument("--strategy", default="kolor")
    plan.add_argument("--max-weight", type=float)
    plan.add_argument("--max-height", type=float)
    plan.add_argument("--max-pieces", type=int, default=200)
    plan.add_argument("--thickness", type=float)
    plan.set_defaults(handler=_cmd_plan)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    with HttpPlanningService(args.api) as service:
        try:
            return args.handler(service, args)
        except PlanningServiceError as exc:
            logger.debug("Command %s failed", args.command, exc_info=True)
            print(f"Error: {exc}", file=sys.stderr)
            return 2


if __name__ == "__main__":
    sys.exit(main())
