"""
Visualization module for power model and peak prediction results.

Creates charts for the monthly bill breakdown, curtailment decisions and
historical peak patterns and yearly peak trends.
"""

from pathlib import Path
from typing import List, Optional

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np

from twelvecp.billing import MonthlyResult
from twelvecp.constants import DAY_NAMES, MONTH_ABBREVIATIONS
from twelvecp.peak_patterns import PeakPatternAnalysis, YearlyTrend
from twelvecp.peak_predictor import ScheduledPeakEvent


# Set style - use ggplot for cross-version compatibility
plt.style.use('ggplot')


def plot_monthly_bill(
    monthly: List[MonthlyResult],
    save_path: Optional[str] = None,
    figsize: tuple = (14, 7)
) -> plt.Figure:
    """
    Stacked monthly bill by charge group with the all-in $/kWh overlaid.

    Args:
        monthly: Monthly results
        save_path: Optional path to save figure
        figsize: Figure size

    Returns:
        Matplotlib figure
    """
    fig, ax = plt.subplots(figsize=figsize)

    labels = [MONTH_ABBREVIATIONS[m.month_index] for m in monthly]
    x = np.arange(len(monthly))
    energy = np.array([m.total_energy_charges for m in monthly])
    dts = np.array([m.total_dts_charges for m in monthly])
    distribution = np.array([m.total_distribution_charges for m in monthly])
    gst = np.array([m.gst for m in monthly])

    ax.bar(x, energy, label='Energy', color='steelblue')
    ax.bar(x, dts, bottom=energy, label='Transmission (DTS)', color='darkorange')
    ax.bar(x, distribution, bottom=energy + dts, label='Distribution', color='seagreen')
    ax.bar(x, gst, bottom=energy + dts + distribution, label='GST', color='grey')
    ax.set_xticks(x)
    ax.set_xticklabels(labels)
    ax.set_ylabel('Monthly Bill (CAD)', fontsize=12)
    ax.set_title('Monthly Bill Breakdown', fontsize=14, fontweight='bold')
    ax.legend(loc='upper left')

    ax2 = ax.twinx()
    ax2.plot(x, [m.per_kwh_cad * 100 for m in monthly], color='black', marker='o',
             linewidth=2, label='All-in ¢/kWh')
    ax2.set_ylabel('All-in Rate (¢/kWh)', fontsize=12)
    ax2.legend(loc='upper right')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_curtailment(
    monthly: List[MonthlyResult],
    save_path: Optional[str] = None,
    figsize: tuple = (12, 6)
) -> plt.Figure:
    """Curtailed hours per month split by reason, against the downtime budget."""
    fig, ax = plt.subplots(figsize=figsize)

    labels = [MONTH_ABBREVIATIONS[m.month_index] for m in monthly]
    x = np.arange(len(monthly))
    bottom = np.zeros(len(monthly))

    for attr, label, color in [
        ('curtailed_12cp', '12CP', 'crimson'),
        ('curtailed_overlap', '12CP + Price', 'purple'),
        ('curtailed_price', 'Price', 'darkorange'),
        ('curtailed_uptime_cap', 'Uptime Cap', 'grey'),
    ]:
        values = np.array([getattr(m, attr) for m in monthly], dtype=float)
        ax.bar(x, values, bottom=bottom, label=label, color=color)
        bottom += values

    ax.step(x, [m.max_downtime_hours for m in monthly], where='mid', color='black',
            linestyle='--', label='Downtime budget')
    ax.set_xticks(x)
    ax.set_xticklabels(labels)
    ax.set_ylabel('Hours', fontsize=12)
    ax.set_title('Curtailed Hours by Reason', fontsize=14, fontweight='bold')
    ax.legend()

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_peak_patterns(
    analysis: PeakPatternAnalysis,
    save_path: Optional[str] = None,
    figsize: tuple = (14, 8)
) -> plt.Figure:
    """Historical peak counts by month, hour of day and day of week."""
    fig, axes = plt.subplots(1, 3, figsize=figsize)

    axes[0].bar(MONTH_ABBREVIATIONS, [analysis.by_month[m] for m in range(1, 13)], color='steelblue')
    axes[0].set_title('Peaks by Month', fontsize=12, fontweight='bold')
    axes[0].tick_params(axis='x', rotation=45)

    axes[1].bar(range(24), [analysis.by_hour[h] for h in range(24)], color='darkorange')
    axes[1].axvline(x=analysis.primary_peak_hour, color='red', linestyle='--',
                    label=f'Primary hour: {analysis.primary_peak_hour}')
    axes[1].set_title('Peaks by Hour', fontsize=12, fontweight='bold')
    axes[1].legend()

    axes[2].bar([d[:3] for d in DAY_NAMES], [analysis.by_day_of_week[d] for d in DAY_NAMES],
                color='seagreen')
    axes[2].set_title('Peaks by Day of Week', fontsize=12, fontweight='bold')

    for ax in axes:
        ax.set_ylabel('Count')

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_yearly_trends(
    trends: List[YearlyTrend],
    save_path: Optional[str] = None,
    figsize: tuple = (12, 6)
) -> plt.Figure:
    """Maximum and mean top-12 demand per year, with the YoY change annotated."""
    fig, ax = plt.subplots(figsize=figsize)

    years = [t.year for t in trends]
    ax.plot(years, [t.max_peak_mw for t in trends], marker='o', color='crimson', label='Max peak')
    ax.plot(years, [t.avg_peak_mw for t in trends], marker='s', color='steelblue',
            linestyle='--', label='Mean of top 12')

    for t in trends:
        if t.yoy_change_percent is not None:
            ax.annotate(f'{t.yoy_change_percent:+.1f}%', (t.year, t.max_peak_mw),
                        textcoords='offset points', xytext=(0, 8), ha='center', fontsize=9)

    ax.set_xticks(years)
    ax.set_xlabel('Year', fontsize=12)
    ax.set_ylabel('AIL (MW)', fontsize=12)
    ax.set_title('Yearly Peak Demand Trend', fontsize=14, fontweight='bold')
    ax.legend()

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_predictions(
    events: List[ScheduledPeakEvent],
    save_path: Optional[str] = None,
    figsize: tuple = (12, 6)
) -> plt.Figure:
    """Predicted events ranked by confidence with their demand ranges."""
    fig, ax = plt.subplots(figsize=figsize)

    labels = [e.event_date.strftime('%b %d') for e in events]
    x = np.arange(len(events))
    ax.bar(x, [e.confidence_score for e in events], color='crimson', alpha=0.7)
    ax.set_xticks(x)
    ax.set_xticklabels(labels, rotation=45)
    ax.set_ylim(0, 100)
    ax.set_ylabel('Confidence (%)', fontsize=12)
    ax.set_title('Predicted 12CP Peak Events', fontsize=14, fontweight='bold')

    ax2 = ax.twinx()
    medians = [e.expected_demand_mw.median for e in events]
    lower = [e.expected_demand_mw.median - e.expected_demand_mw.min for e in events]
    upper = [e.expected_demand_mw.max - e.expected_demand_mw.median for e in events]
    ax2.errorbar(x, medians, yerr=[lower, upper], fmt='o', color='black', capsize=4)
    ax2.set_ylabel('Expected AIL (MW)', fontsize=12)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def generate_all_charts(
    monthly: List[MonthlyResult],
    analysis: Optional[PeakPatternAnalysis] = None,
    events: Optional[List[ScheduledPeakEvent]] = None,
    output_dir: str = 'charts'
) -> List[str]:
    """
    Generate all charts and save to output directory.

    Args:
        monthly: Monthly power model results
        analysis: Optional peak pattern analysis
        events: Optional predicted peak events
        output_dir: Directory to save charts

    Returns:
        List of saved file paths
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    saved_files = []

    if monthly:
        path = str(output_path / 'monthly_bill.png')
        plot_monthly_bill(monthly, save_path=path)
        saved_files.append(path)
        plt.close()

        path = str(output_path / 'curtailment.png')
        plot_curtailment(monthly, save_path=path)
        saved_files.append(path)
        plt.close()

    if analysis is not None and analysis.peak_count:
        path = str(output_path / 'peak_patterns.png')
        plot_peak_patterns(analysis, save_path=path)
        saved_files.append(path)
        plt.close()

    if analysis is not None and analysis.yearly_trends:
        path = str(output_path / 'yearly_trends.png')
        plot_yearly_trends(analysis.yearly_trends, save_path=path)
        saved_files.append(path)
        plt.close()

    if events:
        path = str(output_path / 'peak_predictions.png')
        plot_predictions(events, save_path=path)
        saved_files.append(path)
        plt.close()

    return saved_files
