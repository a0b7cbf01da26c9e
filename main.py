"""
12CP Power Model - Main Entry Point

Runs the curtailment/billing simulation over a year of hourly AESO data
and forecasts upcoming coincident peaks from the historical peak archive.
"""

import json
import logging
import sys
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from twelvecp.billing import monthly_to_frame, shutdown_log_to_frame
from twelvecp.constants import MONTH_NAMES
from twelvecp.data_loader import (
    get_price_statistics,
    load_hourly_data,
    load_peak_history,
    validate_hourly_data,
)
from twelvecp.facility import CurtailmentStrategy, FacilityParams
from twelvecp.peak_patterns import analyze_peak_patterns
from twelvecp.peak_predictor import PredictionConfig, get_prediction_summary, predict_peak_events
from twelvecp.simulator import run_power_model
from twelvecp.tariff_rates import TariffOverrides


def print_header(text: str):
    """Print formatted header."""
    print("\n" + "=" * 60)
    print(f"  {text}")
    print("=" * 60)


def print_section(text: str):
    """Print section divider."""
    print(f"\n--- {text} ---")


def run_power_model_report(
    data_path: str,
    params: FacilityParams,
    overrides: Optional[TariffOverrides] = None,
    output_dir: str = 'output',
    generate_charts: bool = True
):
    print_header("12CP POWER MODEL")
    print(f"\nFacility Configuration:")
    print(f"  Capacity: {params.contracted_capacity_mw} MW")
    print(f"  Target Uptime: {params.target_uptime_percent:.1f}%")
    print(f"  Strategy: {params.curtailment_strategy.value}")
    if params.has_fixed_price:
        print(f"  Fixed Price: ${params.fixed_price_cad_mwh:.2f}/MWh")
    print(f"  Hosting Rate: ${params.hosting_rate_usd_kwh:.4f} USD/kWh")

    print_section("Loading Data")
    try:
        hourly = load_hourly_data(data_path)
    except (FileNotFoundError, ValueError) as e:
        print(f"\nError: {e}")
        return None

    validation = validate_hourly_data(hourly)
    print(f"  Rows loaded: {validation['row_count']:,}")
    print(f"  Date range: {validation['date_range'][0]} to {validation['date_range'][1]}")
    print(f"  Valid: {'Yes' if validation['valid'] else 'No'}")
    for issue in validation['issues']:
        print(f"    - {issue}")

    stats = get_price_statistics(hourly)
    if stats['count']:
        print_section("Price Statistics")
        print(f"  Mean:   ${stats['mean']:.2f}/MWh")
        print(f"  Median: ${stats['median']:.2f}/MWh")
        print(f"  Max:    ${stats['max']:.2f}/MWh")
        print(f"  Peak AIL: {stats['peak_ail_mw']:,.0f} MW")

    result = run_power_model(hourly, params, overrides)

    print_section("Results Summary")
    print(f"  Breakeven: ${result.breakeven:.2f}/MWh")
    print("\n  Month      | Uptime  | Curtailed | 12CP | Price | Total Due      | ¢/kWh")
    print("  " + "-" * 74)
    for m in result.monthly:
        print(
            f"  {m.month:<10} | {m.uptime_percent:6.2f}% | {m.curtailed_hours:>9} | "
            f"{m.curtailed_12cp + m.curtailed_overlap:>4} | {m.curtailed_price:>5} | "
            f"${m.total_amount_due:>13,.0f} | {m.per_kwh_cad * 100:5.2f}"
        )

    annual = result.annual
    print(f"\n  Annual Total Due: ${annual.total_amount_due:,.2f}")
    print(f"  All-in Rate: {annual.avg_per_kwh_cad * 100:.3f}¢/kWh CAD "
          f"({annual.avg_per_kwh_usd * 100:.3f}¢/kWh USD)")
    print(f"  Uptime: {annual.avg_uptime_percent:.2f}%")
    print(f"  Curtailment Savings: ${annual.total_curtailment_savings:,.0f}")

    print_section("Exporting Results")
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    monthly_to_frame(result.monthly).to_csv(out / 'monthly_results.csv', index=False)
    shutdown_log_to_frame(result.shutdown_log).to_csv(out / 'shutdown_log.csv', index=False)
    with open(out / 'annual_summary.json', 'w') as f:
        json.dump(
            {
                'generatedAt': datetime.now().isoformat(),
                'breakeven': round(result.breakeven, 2),
                'params': asdict(params),
                'annual': asdict(annual),
            },
            f, indent=2, default=str
        )
    print(f"  Exported results to {out}/")

    if generate_charts and result.monthly:
        print_section("Generating Charts")
        try:
            from twelvecp.visualizer import generate_all_charts
            saved = generate_all_charts(result.monthly, output_dir=str(out / 'charts'))
            for path in saved:
                print(f"    - {Path(path).name}")
        except (OSError, ValueError) as e:
            print(f"  Warning: Could not generate charts: {e}")

    return result


def run_peak_forecast(
    peaks_path: str,
    forecast_year: int,
    output_dir: str = 'output',
    generate_charts: bool = True
):
    print_header("12CP PEAK FORECAST")

    print_section("Loading Peak History")
    try:
        all_time, yearly = load_peak_history(peaks_path)
    except (FileNotFoundError, ValueError, KeyError) as e:
        print(f"\nError: {e}")
        return None
    print(f"  All-time peaks: {len(all_time)}")
    print(f"  Years of top-12 data: {len(yearly)}")

    analysis = analyze_peak_patterns(all_time, yearly)
    print_section("Peak Patterns")
    print(f"  All-time peak: {analysis.all_time_peak_mw:,.0f} MW")
    print(f"  YoY growth: {analysis.avg_yoy_growth_percent:.2f}%")
    print(f"  Primary peak hour: {analysis.primary_peak_hour}:00")
    if analysis.avg_peak_temperature_c is not None:
        print(f"  Avg temperature at peaks: {analysis.avg_peak_temperature_c:.1f}°C")

    print_section("Peaks by Month")
    for month, stats in analysis.month_stats.items():
        print(f"  {MONTH_NAMES[month - 1]:<10} {stats.peak_count:>3} peaks  "
              f"avg {stats.avg_peak_mw:,.0f} MW  max {stats.max_peak_mw:,.0f} MW")

    if analysis.yearly_trends:
        print_section("Yearly Trend")
        for t in analysis.yearly_trends:
            change = f"{t.yoy_change_percent:+.2f}%" if t.yoy_change_percent is not None else "-"
            print(f"  {t.year}  max {t.max_peak_mw:,.0f} MW  avg {t.avg_peak_mw:,.0f} MW  {change}")

    events = predict_peak_events(analysis, PredictionConfig.for_winter(forecast_year), today=date.today())
    summary = get_prediction_summary(events)

    print_section("Predicted Peak Events")
    for e in events:
        print(
            f"  #{e.rank:<2} {e.display_date:<30} {e.time_window.start}-{e.time_window.end} "
            f"{e.confidence_score:>3}% {e.risk_level.value:<9} "
            f"{e.expected_demand_mw.median:,} MW"
        )
    print(f"\n  Critical: {summary.critical_count}  High: {summary.high_count}  "
          f"Avg confidence: {summary.average_confidence}%")

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    with open(out / 'peak_predictions.json', 'w') as f:
        json.dump([asdict(e) for e in events], f, indent=2, default=str)
    print(f"  Exported predictions to {out}/peak_predictions.json")

    if generate_charts and events:
        try:
            from twelvecp.visualizer import generate_all_charts
            generate_all_charts([], analysis, events, output_dir=str(out / 'charts'))
        except (OSError, ValueError) as e:
            print(f"  Warning: Could not generate charts: {e}")

    return events


def main(argv=None):
    """Main entry point with command line support."""
    import argparse

    parser = argparse.ArgumentParser(
        description="12CP Power Model - curtailment, billing and peak forecasting"
    )
    parser.add_argument("--data", "-d", default=None,
                        help="Path to hourly pool price / AIL CSV")
    parser.add_argument("--peaks", "-k", default=None,
                        help="Path to historical peak archive JSON")
    parser.add_argument("--capacity", "-c", type=float, default=45.0,
                        help="Contracted capacity in MW")
    parser.add_argument("--substation-fraction", type=float, default=1.0,
                        help="Share of the POD substation owned (0-1)")
    parser.add_argument("--uptime", "-u", type=float, default=95.0,
                        help="Target uptime percent")
    parser.add_argument("--strategy", "-s", default=CurtailmentStrategy.TWELVE_CP_PRIORITY.value,
                        choices=[s.value for s in CurtailmentStrategy],
                        help="Curtailment strategy")
    parser.add_argument("--fixed-price", type=float, default=None,
                        help="Fixed contract energy price ($/MWh)")
    parser.add_argument("--hosting-rate", type=float, default=0.07,
                        help="Hosting revenue (USD/kWh)")
    parser.add_argument("--cad-usd", type=float, default=0.7246,
                        help="USD per CAD")
    parser.add_argument("--overrides", default=None,
                        help="JSON file of tariff overrides")
    parser.add_argument("--forecast-year", type=int, default=date.today().year,
                        help="Year whose December starts the forecast")
    parser.add_argument("--output", "-o", default="output",
                        help="Output directory")
    parser.add_argument("--no-charts", action="store_true",
                        help="Skip chart generation")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(name)s %(levelname)s: %(message)s'
    )

    if not args.data and not args.peaks:
        parser.error("provide --data and/or --peaks")

    ok = True
    if args.data:
        try:
            params = FacilityParams(
                contracted_capacity_mw=args.capacity,
                substation_fraction=args.substation_fraction,
                target_uptime_percent=args.uptime,
                curtailment_strategy=args.strategy,
                fixed_price_cad_mwh=args.fixed_price,
                cad_usd_rate=args.cad_usd,
                hosting_rate_usd_kwh=args.hosting_rate,
            )
        except ValueError as e:
            parser.error(str(e))

        overrides = None
        if args.overrides:
            try:
                with open(args.overrides, 'r') as f:
                    overrides = TariffOverrides.from_dict(json.load(f))
            except (OSError, ValueError, TypeError, KeyError) as e:
                parser.error(f"invalid --overrides file {args.overrides}: {e}")

        ok = run_power_model_report(
            args.data, params, overrides, args.output, not args.no_charts
        ) is not None and ok

    if args.peaks:
        ok = run_peak_forecast(
            args.peaks, args.forecast_year, args.output, not args.no_charts
        ) is not None and ok

    print_header("RUN COMPLETE" if ok else "RUN FAILED")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
