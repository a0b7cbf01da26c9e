"""
Billing aggregator.

Expands each month's running hours into every tariff line item (AESO Rate
DTS, energy, FortisAlberta distribution, GST) and rolls months up into an
annual summary.
"""

from dataclasses import asdict, dataclass, field
from typing import Dict, List

import pandas as pd

from twelvecp.constants import KW_PER_MW, MONTH_NAMES
from twelvecp.facility import FacilityParams
from twelvecp.records import MonthPlan, ShutdownReason, ShutdownRecord
from twelvecp.safe_math import finite_or_zero, safe_divide
from twelvecp.tariff_rates import ResolvedRates, pod_tiered_charge

# Charge components summed month by month into the annual breakdown
CHARGE_COMPONENTS = (
    'bulk_coincident_demand',
    'bulk_metered_energy',
    'regional_billing_capacity',
    'regional_metered_energy',
    'pod_substation',
    'pod_tiered',
    'operating_reserve',
    'tcr',
    'voltage_control',
    'system_support',
    'total_dts_charges',
    'pool_energy',
    'retailer_fee',
    'rider_f',
    'total_energy_charges',
    'distribution_demand_charge',
    'distribution_volumetric',
    'total_distribution_charges',
    'total_pre_gst',
    'gst',
    'total_amount_due',
    'curtailment_savings',
)


@dataclass(frozen=True)
class MonthlyResult:
    """One calendar month of operation and billing."""
    month: str
    month_index: int
    total_hours: int
    running_hours: int
    curtailed_hours: int
    curtailed_12cp: int
    curtailed_price: int
    curtailed_overlap: int
    curtailed_uptime_cap: int
    max_downtime_hours: int
    uptime_percent: float
    mwh: float
    kwh: float
    avg_pool_price_running: float
    # AESO Rate DTS
    bulk_coincident_demand: float
    bulk_metered_energy: float
    regional_billing_capacity: float
    regional_metered_energy: float
    pod_substation: float
    pod_tiered: float
    operating_reserve: float
    tcr: float
    voltage_control: float
    system_support: float
    total_dts_charges: float
    # Energy
    pool_energy: float
    retailer_fee: float
    rider_f: float
    total_energy_charges: float
    # FortisAlberta Rate 65
    distribution_demand_charge: float
    distribution_volumetric: float
    total_distribution_charges: float
    # Totals
    total_pre_gst: float
    gst: float
    total_amount_due: float
    per_kwh_cad: float
    per_kwh_usd: float
    curtailment_savings: float


@dataclass(frozen=True)
class AnnualSummary:
    """Sums of all months; rates and averages are weighted by totals."""
    total_hours: int = 0
    total_running_hours: int = 0
    total_curtailed_hours: int = 0
    curtailed_12cp: int = 0
    curtailed_price: int = 0
    curtailed_overlap: int = 0
    curtailed_uptime_cap: int = 0
    avg_uptime_percent: float = 0.0
    total_mwh: float = 0.0
    total_kwh: float = 0.0
    total_dts_charges: float = 0.0
    total_energy_charges: float = 0.0
    total_distribution_charges: float = 0.0
    total_pre_gst: float = 0.0
    total_gst: float = 0.0
    total_amount_due: float = 0.0
    total_curtailment_savings: float = 0.0
    avg_per_kwh_cad: float = 0.0
    avg_per_kwh_usd: float = 0.0
    avg_pool_price_running: float = 0.0
    components: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def empty(cls) -> 'AnnualSummary':
        return cls(components={name: 0.0 for name in CHARGE_COMPONENTS})


def bill_month(plan: MonthPlan, params: FacilityParams, rates: ResolvedRates) -> MonthlyResult:
    """
    Compute every charge for one month.

    Args:
        plan: Optimizer output for the month
        params: Facility configuration
        rates: Resolved tariff rates

    Returns:
        MonthlyResult
    """
    cap = params.contracted_capacity_mw
    running_hours = plan.running_hours
    mwh = running_hours * cap
    kwh = mwh * KW_PER_MW

    pool_energy = sum(params.effective_price(rec.pool_price) * cap for rec in plan.running)
    running_price_sum = sum(rec.pool_price for rec in plan.running)

    # 12CP charge applies only if the facility ran through the coincident peak
    bulk_coincident_demand = 0.0 if plan.peak_curtailed else cap * rates.bulk_coincident_demand
    bulk_metered_energy = mwh * rates.bulk_metered_energy
    regional_billing_capacity = cap * rates.regional_billing_capacity
    regional_metered_energy = mwh * rates.regional_metered_energy
    pod_substation = rates.pod_substation * params.substation_fraction
    pod_tiered = pod_tiered_charge(cap, params.substation_fraction, rates.pod_tiers)
    operating_reserve = pool_energy * rates.operating_reserve_fraction
    tcr = mwh * rates.tcr_metered_energy
    voltage_control = mwh * rates.voltage_control_metered_energy
    system_support = cap * rates.system_support_highest_demand

    total_dts_charges = (
        bulk_coincident_demand + bulk_metered_energy + regional_billing_capacity
        + regional_metered_energy + pod_substation + pod_tiered + operating_reserve
        + tcr + voltage_control + system_support
    )

    retailer_fee = mwh * rates.retailer_fee_metered_energy
    rider_f = mwh * rates.rider_f_metered_energy
    total_energy_charges = pool_energy + retailer_fee + rider_f

    distribution_demand_charge = cap * KW_PER_MW * rates.distribution_demand_kw_month
    distribution_volumetric = kwh * rates.distribution_volumetric_cents_kwh / 100
    total_distribution_charges = distribution_demand_charge + distribution_volumetric

    total_pre_gst = total_dts_charges + total_energy_charges + total_distribution_charges
    gst = total_pre_gst * rates.gst_rate
    total_amount_due = total_pre_gst + gst
    per_kwh_cad = safe_divide(total_amount_due, kwh)

    return MonthlyResult(
        month=MONTH_NAMES[plan.month_index],
        month_index=plan.month_index,
        total_hours=plan.total_hours,
        running_hours=running_hours,
        curtailed_hours=plan.curtailed_hours,
        curtailed_12cp=plan.count(ShutdownReason.TWELVE_CP),
        curtailed_price=plan.count(ShutdownReason.PRICE),
        curtailed_overlap=plan.count(ShutdownReason.TWELVE_CP_AND_PRICE),
        curtailed_uptime_cap=plan.count(ShutdownReason.UPTIME_CAP),
        max_downtime_hours=plan.max_downtime_hours,
        uptime_percent=safe_divide(running_hours, plan.total_hours) * 100,
        mwh=mwh,
        kwh=kwh,
        avg_pool_price_running=safe_divide(running_price_sum, running_hours),
        bulk_coincident_demand=finite_or_zero(bulk_coincident_demand),
        bulk_metered_energy=finite_or_zero(bulk_metered_energy),
        regional_billing_capacity=finite_or_zero(regional_billing_capacity),
        regional_metered_energy=finite_or_zero(regional_metered_energy),
        pod_substation=finite_or_zero(pod_substation),
        pod_tiered=finite_or_zero(pod_tiered),
        operating_reserve=finite_or_zero(operating_reserve),
        tcr=finite_or_zero(tcr),
        voltage_control=finite_or_zero(voltage_control),
        system_support=finite_or_zero(system_support),
        total_dts_charges=finite_or_zero(total_dts_charges),
        pool_energy=finite_or_zero(pool_energy),
        retailer_fee=finite_or_zero(retailer_fee),
        rider_f=finite_or_zero(rider_f),
        total_energy_charges=finite_or_zero(total_energy_charges),
        distribution_demand_charge=finite_or_zero(distribution_demand_charge),
        distribution_volumetric=finite_or_zero(distribution_volumetric),
        total_distribution_charges=finite_or_zero(total_distribution_charges),
        total_pre_gst=finite_or_zero(total_pre_gst),
        gst=finite_or_zero(gst),
        total_amount_due=finite_or_zero(total_amount_due),
        per_kwh_cad=per_kwh_cad,
        per_kwh_usd=finite_or_zero(per_kwh_cad * params.cad_usd_rate),
        curtailment_savings=finite_or_zero(plan.savings),
    )


def summarize_year(monthly: List[MonthlyResult], params: FacilityParams) -> AnnualSummary:
    """
    Roll monthly results up into an annual summary.

    Rates are recomputed from totals, never averaged across months.
    """
    if not monthly:
        return AnnualSummary.empty()

    components = {name: sum(getattr(m, name) for m in monthly) for name in CHARGE_COMPONENTS}
    total_hours = sum(m.total_hours for m in monthly)
    total_running_hours = sum(m.running_hours for m in monthly)
    total_kwh = sum(m.kwh for m in monthly)
    running_price_total = sum(m.avg_pool_price_running * m.running_hours for m in monthly)
    avg_per_kwh_cad = safe_divide(components['total_amount_due'], total_kwh)

    return AnnualSummary(
        total_hours=total_hours,
        total_running_hours=total_running_hours,
        total_curtailed_hours=sum(m.curtailed_hours for m in monthly),
        curtailed_12cp=sum(m.curtailed_12cp for m in monthly),
        curtailed_price=sum(m.curtailed_price for m in monthly),
        curtailed_overlap=sum(m.curtailed_overlap for m in monthly),
        curtailed_uptime_cap=sum(m.curtailed_uptime_cap for m in monthly),
        avg_uptime_percent=safe_divide(total_running_hours, total_hours) * 100,
        total_mwh=sum(m.mwh for m in monthly),
        total_kwh=total_kwh,
        total_dts_charges=components['total_dts_charges'],
        total_energy_charges=components['total_energy_charges'],
        total_distribution_charges=components['total_distribution_charges'],
        total_pre_gst=components['total_pre_gst'],
        total_gst=components['gst'],
        total_amount_due=components['total_amount_due'],
        total_curtailment_savings=components['curtailment_savings'],
        avg_per_kwh_cad=avg_per_kwh_cad,
        avg_per_kwh_usd=finite_or_zero(avg_per_kwh_cad * params.cad_usd_rate),
        avg_pool_price_running=safe_divide(running_price_total, total_running_hours),
        components=components,
    )


def monthly_to_frame(monthly: List[MonthlyResult]) -> pd.DataFrame:
    """Monthly results as a DataFrame, one row per month."""
    return pd.DataFrame([asdict(m) for m in monthly])


def shutdown_log_to_frame(shutdown_log: List[ShutdownRecord]) -> pd.DataFrame:
    """Shutdown log as a DataFrame with the reason rendered as its tag."""
    rows = []
    for rec in shutdown_log:
        row = asdict(rec)
        row['reason'] = rec.reason.value
        rows.append(row)
    return pd.DataFrame(
        rows, columns=['date', 'hour_ending', 'pool_price', 'ail_mw', 'reason', 'cost_avoided']
    )
