"""
Pipeline runner CLI - makes the stock KPIs pipeline human-visible.
Usage: python pipeline/run.py kpis PRICES_FILE
       python pipeline/run.py history PRICES_FILE EXTERNAL_ID
"""

import sys
import json
import logging
import argparse
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from analysis.calculations.returns import is_available
from analysis.kpi_assembler import SORT_FIELDS, UnknownEntityError
from pipeline.stock_kpis_dag import StockKPIConfig, run_stock_kpis, load_entity_history, PipelineError


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for both commands."""
    parser = argparse.ArgumentParser(
        description='Compute trailing 1/3/5-year returns from daily price rows',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python pipeline/run.py kpis ./data/raw/stock_data.csv
  python pipeline/run.py kpis ./data/raw/stock_data.json --workers 4 --sort-by ticker
  python pipeline/run.py history ./data/raw/stock_data.csv delta-airlines
        """
    )
    parser.add_argument('--catalog',
                        help='Entity catalog YAML (default: $KPI_CATALOG_PATH or ./config/airlines.yml)')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Minimal output (just success/failure)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Debug logging')

    commands = parser.add_subparsers(dest='command', required=True)

    kpis = commands.add_parser('kpis', help='Compute KPI records and write them to JSON')
    kpis.add_argument('prices', nargs='?',
                      help='Price rows file, .csv or .json (default: $KPI_PRICES_PATH)')
    kpis.add_argument('--output',
                      help='Output JSON path (default: $KPI_OUTPUT_PATH or ./data/processed/kpis/stock_kpis.json)')
    kpis.add_argument('--workers', type=int,
                      help='Entities processed in parallel (default: $KPI_WORKERS or 1)')
    kpis.add_argument('--sort-by', choices=SORT_FIELDS,
                      help='Order records in the output')
    kpis.add_argument('--legacy-anchors', action='store_true',
                      help='Report every horizon even when the series does not reach back that far')

    history = commands.add_parser('history', help="Print one entity's sorted price series")
    history.add_argument('prices', help='Price rows file, .csv or .json')
    history.add_argument('external_id', help='Catalog external id (e.g. delta-airlines)')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING if args.quiet else logging.INFO
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    try:
        if args.command == 'kpis':
            config = StockKPIConfig.from_env(
                prices_path=args.prices,
                catalog_path=args.catalog,
                output_path=args.output,
                workers=args.workers,
                sort_by=args.sort_by,
                require_full_horizon=not args.legacy_anchors
            )
        else:
            config = StockKPIConfig.from_env(prices_path=args.prices, catalog_path=args.catalog)
    except PipelineError as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return 1

    if args.command == 'history':
        return _run_history(config, args.external_id)

    if not args.quiet:
        print(f"🚀 Running stock KPIs for {config.prices_path}")
        print(f"📚 Catalog: {config.catalog_path}")
        print()

    result = run_stock_kpis(config)

    if result['status'] != 'completed':
        print(f"❌ Pipeline failed: {result.get('error_message', 'Unknown error')}", file=sys.stderr)
        return 1

    if args.quiet:
        print(f"✅ {result['records_out']} KPI records written to {result['output_path']}")
    else:
        _display_kpi_results(result)

    return 0


def _run_history(config: StockKPIConfig, external_id: str) -> int:
    """Print the sorted series for one entity as JSON."""
    try:
        series = load_entity_history(config, external_id)
    except UnknownEntityError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"❌ Failed to load history: {e}", file=sys.stderr)
        return 1

    rows = [
        {
            'date': point.date.isoformat() if point.date else None,
            'adjusted_close': point.adjusted_close,
        }
        for point in series
    ]
    print(json.dumps(rows, indent=2))
    return 0


def _display_kpi_results(result: Dict[str, Any]):
    """Display KPI records and diagnostics."""
    print("📊 Pipeline Results:")
    print(f"   Status: {result['status'].upper()}")
    print(f"   Duration: {result['duration_seconds']:.1f}s")
    print()

    print("✅ Data Processing:")
    print(f"   Rows read: {result['rows_in']}")
    if result['rows_dropped'] > 0:
        print(f"   Rows dropped: {result['rows_dropped']}")
    print(f"   Entities seen: {result['entities_seen']}")
    print(f"   Entities skipped: {result['entities_skipped']}")
    print()

    if result['records']:
        print("💰 Trailing Returns:")
        print(f"   {'Ticker':<6} {'Latest':>10} {'Date':<10} {'1Y':>9} {'3Y':>9} {'5Y':>9}")
        for record in result['records']:
            print(
                f"   {record['ticker']:<6} {record['latest_price']:>10.2f} {record['latest_date']:<10} "
                f"{_format_return(record['one_year_return']):>9} "
                f"{_format_return(record['three_year_return']):>9} "
                f"{_format_return(record['five_year_return']):>9}"
            )
        print()

    print(f"💾 Records written to: {result['output_path']}")


def _format_return(value: Any) -> str:
    """Render a return field as a signed percentage or the marker."""
    if not is_available(value):
        return str(value)
    return f"{value:+.2f}%"


if __name__ == '__main__':
    sys.exit(main())
