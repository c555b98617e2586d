#!/usr/bin/env python3
"""
Command-Line Interface for the GreenCart delivery simulation.

Runs one greedy assignment simulation over a CSV scenario and prints the
KPIs, per-driver performance and (optionally) every order result.

Usage:
    python main.py                              # Run the bundled scenario
    python main.py --drivers 3 --max-hours 8    # Limit fleet and hours
    python main.py --start-time 2025-01-15T09:00:00
    python main.py --json                       # Machine-readable output

Exit Codes:
    0: Success
    1: Data loading or parameter error
    2: Simulation error
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Dict, List

# Ensure the package is importable when run from a checkout
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from greencart import config, utils
from greencart.exceptions import GreenCartError, PreconditionError, ValidationError
from greencart.simulation import Simulation, default_service

logger = logging.getLogger("greencart.cli")

DEFAULT_DATA_DIR = "data"
DEFAULT_START_TIME = "2025-01-15T09:00:00"
"""Start of the bundled scenario's delivery day."""


def print_header() -> None:
    """Print the CLI header."""
    print("\n" + "=" * 60)
    print("  GREENCART LOGISTICS - Delivery Simulation")
    print("  Greedy Driver Assignment")
    print("=" * 60 + "\n")


def print_summary(results: Dict[str, Any]) -> None:
    """Print the fleet-wide KPIs."""
    details = results["optimizationDetails"]
    rows = [
        ("Total Orders", results["totalOrders"]),
        ("On-time Deliveries", results["onTimeDeliveries"]),
        ("Late Deliveries", results["lateDeliveries"]),
        ("Drivers Used", results["driversUsed"]),
        ("Total Profit", f"Rs {results['totalProfit']:,}"),
        ("Total Fuel Cost", f"Rs {results['totalFuelCost']:,}"),
        ("Total Distance", f"{details['totalDistance']:.2f} km"),
        ("Total Time", utils.format_time_duration(details["totalTime"])),
        ("Avg Utilization", f"{details['averageUtilization']:.2f}%"),
        ("Efficiency Score", f"{results['efficiencyScore']:.2f}"),  # THE KEY METRIC
    ]

    print("\n" + "=" * 60)
    print("  SIMULATION RESULTS")
    print("=" * 60 + "\n")
    for label, value in rows:
        print(f"| {label:<25} | {str(value):>28} |")


def print_driver_table(performance: List[Dict[str, Any]]) -> None:
    """Print per-driver performance."""
    if not performance:
        print("\nNo drivers were assigned any orders.")
        return

    print("\n" + "-" * 60)
    print(f"| {'Driver':<18} | {'Orders':>6} | {'Hours':>6} | {'Earn Rs':>8} | {'On-time':>7} |")
    print("|" + "-" * 20 + "|" + "-" * 8 + "|" + "-" * 8 + "|" + "-" * 10 + "|" + "-" * 9 + "|")
    for p in performance:
        print(f"| {p['driverName'][:18]:<18} | {p['ordersCompleted']:>6} | "
              f"{p['hoursWorked']:>6.2f} | {p['totalEarnings']:>8} | {p['onTimeRate']:>6.1f}% |")


def print_order_table(order_results: List[Dict[str, Any]]) -> None:
    """Print every simulated delivery in dispatch order."""
    print("\n" + "-" * 60)
    for r in order_results:
        flag = "ON-TIME" if r["isOnTime"] else "LATE"
        print(f"  {r['orderId']:<8} -> {r['driverName']:<18} {r['timeSpent']:>4} min  "
              f"profit Rs {r['profit']:>6}  [{flag}]")


def load_scenario(data_dir: str, quiet: bool = False):
    """
    Load drivers, routes and orders from ``data_dir``.

    Returns:
        Tuple of (drivers, routes, orders) or None if loading failed
    """
    paths = [os.path.join(data_dir, name) for name in ("drivers.csv", "routes.csv", "orders.csv")]
    try:
        drivers, routes, orders = Simulation.load_data(*paths)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: Failed to load data: {e}")
        return None
    if not quiet:
        print(f"Loaded {len(drivers)} drivers, {len(routes)} routes and {len(orders)} orders from '{data_dir}'")
    return drivers, routes, orders


def main() -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="GreenCart Delivery Simulation CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                                   # Bundled scenario, defaults
  python main.py --drivers 3 --max-hours 6         # Smaller fleet, shorter shifts
  python main.py --data-dir my_scenario --json     # Own CSVs, JSON output
        """
    )

    parser.add_argument(
        "--data-dir", "-d",
        type=str,
        default=DEFAULT_DATA_DIR,
        help="Directory holding drivers.csv, routes.csv and orders.csv"
    )

    parser.add_argument(
        "--drivers", "-n",
        type=int,
        default=config.DEFAULT_NUMBER_OF_DRIVERS,
        help=f"Number of drivers to use ({config.MIN_DRIVERS}-{config.MAX_DRIVERS}, "
             f"default: {config.DEFAULT_NUMBER_OF_DRIVERS})"
    )

    parser.add_argument(
        "--max-hours", "-m",
        type=float,
        default=config.DEFAULT_MAX_HOURS_PER_DRIVER,
        help=f"Max hours per driver ({config.MIN_HOURS_PER_DRIVER}-{config.MAX_HOURS_PER_DRIVER}, "
             f"default: {config.DEFAULT_MAX_HOURS_PER_DRIVER})"
    )

    parser.add_argument(
        "--start-time", "-t",
        type=str,
        default=DEFAULT_START_TIME,
        help=f"Simulation start timestamp, ISO-8601 (default: {DEFAULT_START_TIME})"
    )

    parser.add_argument(
        "--orders",
        action="store_true",
        help="Also list every order result"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the raw result object as JSON"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show detailed dispatch logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        start_time: datetime = utils.parse_datetime(args.start_time)
    except ValueError:
        print(f"ERROR: Invalid start time '{args.start_time}'")
        return 1

    if not args.json:
        print_header()

    scenario = load_scenario(args.data_dir, quiet=args.json)
    if scenario is None:
        return 1
    drivers, routes, orders = scenario
    logger.debug("Simulating from %s with %d driver(s), max %sh", start_time, args.drivers, args.max_hours)

    try:
        results = default_service.run_simulation(
            drivers,
            orders,
            number_of_drivers=args.drivers,
            max_hours_per_driver=args.max_hours,
            start_time=start_time,
            routes=routes,
        )
    except (ValidationError, PreconditionError) as e:
        print(f"ERROR: {e}")
        return 1
    except GreenCartError as e:
        print(f"ERROR: Simulation failed: {e}")
        return 2

    if args.json:
        print(json.dumps(results, indent=2))
        return 0

    print_summary(results)
    print_driver_table(results["driverPerformance"])
    if args.orders:
        print_order_table(results["orderResults"])
    print("\n" + "=" * 60 + "\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
