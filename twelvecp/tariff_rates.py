"""
Tariff rates for a transmission-connected load in Alberta.

Holds a versioned snapshot of the AESO ISO tariff (Rate DTS) and the
FortisAlberta Rate 65 distribution schedule, resolves caller overrides
against it, and derives the breakeven pool price.
"""

import math
from dataclasses import dataclass, fields
from typing import Mapping, Optional, Tuple, Union

from twelvecp.facility import FacilityParams
from twelvecp.safe_math import finite_or_zero


@dataclass(frozen=True)
class PodTier:
    """One step of the point-of-delivery charge schedule."""
    mw: float    # Tier width in MW (math.inf for the final tier)
    rate: float  # $/MW/month


@dataclass(frozen=True)
class TariffSchedule:
    """
    Published rate snapshot.

    Energy rates are $/MWh, capacity rates $/MW/month, the POD substation
    charge is $/month, operating reserve is a percent of energy cost and
    the distribution volumetric charge is cents/kWh.
    """
    version: str
    effective_date: str
    # AESO Rate DTS
    bulk_coincident_demand: float
    bulk_metered_energy: float
    regional_billing_capacity: float
    regional_metered_energy: float
    pod_substation: float
    pod_tiers: Tuple[PodTier, ...]
    operating_reserve_percent: float
    tcr_metered_energy: float
    voltage_control_metered_energy: float
    system_support_highest_demand: float
    rider_f_metered_energy: float
    retailer_fee_metered_energy: float
    gst_rate: float
    # FortisAlberta Rate 65
    distribution_demand_kw_month: float
    distribution_volumetric_cents_kwh: float


DEFAULT_TARIFF = TariffSchedule(
    version='AESO Rate DTS 2025 / FortisAlberta Rate 65 2026',
    effective_date='2025-01-01',
    bulk_coincident_demand=11164.0,
    bulk_metered_energy=1.23,
    regional_billing_capacity=2945.0,
    regional_metered_energy=0.93,
    pod_substation=15304.0,
    pod_tiers=(
        PodTier(mw=7.5, rate=5037.0),
        PodTier(mw=9.5, rate=2935.0),
        PodTier(mw=23.0, rate=1946.0),
        PodTier(mw=math.inf, rate=1163.0),
    ),
    operating_reserve_percent=12.44,
    tcr_metered_energy=0.265,
    voltage_control_metered_energy=0.17,
    system_support_highest_demand=52.0,
    rider_f_metered_energy=1.30,
    retailer_fee_metered_energy=0.25,
    gst_rate=0.05,
    distribution_demand_kw_month=0.2545,
    distribution_volumetric_cents_kwh=0.2347,
)


@dataclass(frozen=True)
class TariffOverrides:
    """Sparse overrides; None means use the schedule value."""
    bulk_coincident_demand: Optional[float] = None
    bulk_metered_energy: Optional[float] = None
    regional_billing_capacity: Optional[float] = None
    regional_metered_energy: Optional[float] = None
    pod_substation: Optional[float] = None
    pod_tiers: Optional[Tuple[PodTier, ...]] = None
    operating_reserve_percent: Optional[float] = None
    tcr_metered_energy: Optional[float] = None
    voltage_control_metered_energy: Optional[float] = None
    system_support_highest_demand: Optional[float] = None
    rider_f_metered_energy: Optional[float] = None
    retailer_fee_metered_energy: Optional[float] = None
    gst_rate: Optional[float] = None
    distribution_demand_kw_month: Optional[float] = None
    distribution_volumetric_cents_kwh: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping) -> 'TariffOverrides':
        """Build overrides from a plain mapping (e.g. JSON)."""
        data = dict(data)
        tiers = data.get('pod_tiers')
        if tiers is not None:
            data['pod_tiers'] = tuple(
                tier if isinstance(tier, PodTier)
                else PodTier(mw=float(tier['mw']) if tier['mw'] is not None else math.inf,
                             rate=float(tier['rate']))
                for tier in tiers
            )
        return cls(**data)


@dataclass(frozen=True)
class ResolvedRates:
    """Every tariff component with overrides applied."""
    bulk_coincident_demand: float
    bulk_metered_energy: float
    regional_billing_capacity: float
    regional_metered_energy: float
    pod_substation: float
    pod_tiers: Tuple[PodTier, ...]
    operating_reserve_percent: float
    tcr_metered_energy: float
    voltage_control_metered_energy: float
    system_support_highest_demand: float
    rider_f_metered_energy: float
    retailer_fee_metered_energy: float
    gst_rate: float
    distribution_demand_kw_month: float
    distribution_volumetric_cents_kwh: float

    @property
    def operating_reserve_fraction(self) -> float:
        return self.operating_reserve_percent / 100

    @property
    def distribution_volumetric_per_mwh(self) -> float:
        """Distribution volumetric charge converted from cents/kWh to $/MWh."""
        return self.distribution_volumetric_cents_kwh / 100 * 1000

    @property
    def marginal_per_mwh(self) -> float:
        """Sum of the volumetric components paid on each additional MWh."""
        return (
            self.retailer_fee_metered_energy
            + self.bulk_metered_energy
            + self.regional_metered_energy
            + self.tcr_metered_energy
            + self.voltage_control_metered_energy
            + self.rider_f_metered_energy
            + self.distribution_volumetric_per_mwh
        )


OverridesLike = Union[TariffOverrides, Mapping, None]


def resolve_rates(
    overrides: OverridesLike = None,
    schedule: TariffSchedule = DEFAULT_TARIFF
) -> ResolvedRates:
    """
    Merge overrides with the default schedule.

    Args:
        overrides: TariffOverrides, a mapping of the same field names, or None
        schedule: Baseline rate snapshot

    Returns:
        ResolvedRates with every field concrete
    """
    if overrides is None:
        overrides = TariffOverrides()
    elif not isinstance(overrides, TariffOverrides):
        overrides = TariffOverrides.from_dict(overrides)

    resolved = {}
    for f in fields(ResolvedRates):
        value = getattr(overrides, f.name)
        resolved[f.name] = value if value is not None else getattr(schedule, f.name)
    return ResolvedRates(**resolved)


def pod_tiered_charge(
    capacity_mw: float,
    substation_fraction: float,
    tiers: Tuple[PodTier, ...]
) -> float:
    """
    Monthly point-of-delivery charge for the tiered schedule.

    Capacity is consumed against each tier in order; bounded tier widths
    are scaled by the substation ownership fraction.
    """
    remaining = capacity_mw
    total = 0.0
    for tier in tiers:
        tier_mw = remaining if math.isinf(tier.mw) else tier.mw * substation_fraction
        applied = min(remaining, tier_mw)
        if applied <= 0:
            break
        total += applied * tier.rate
        remaining -= applied
    return total


def hosting_revenue_cad_mwh(params: FacilityParams) -> float:
    """Hosting revenue converted from USD/kWh to CAD/MWh."""
    return params.hosting_rate_usd_kwh / params.cad_usd_rate * 1000


def calculate_breakeven(params: FacilityParams, rates: ResolvedRates) -> float:
    """
    Pool price ($/MWh) above which running an hour loses money.

    Only volumetric components count; capacity charges do not change with
    one more or one fewer MWh consumed.
    """
    margin = hosting_revenue_cad_mwh(params) - rates.marginal_per_mwh
    or_multiplier = 1 + rates.operating_reserve_fraction
    if or_multiplier == 0:
        return 0.0
    return finite_or_zero(margin / or_multiplier)
