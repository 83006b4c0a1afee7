"""
External factors layer.

Quantitative sector and macro analysis. This is the only layer with a
cross-stock dependency: sector and peer aggregates are computed fresh per
run over the current universe, passed in explicitly as a UniverseView.

    S_ext = 0.40*sectorMomentum + 0.30*peerPerformance + 0.30*macroSensitivity

Assumed macro regime:
    - Rates elevated and may start declining (rate-sensitive: small bonus)
    - Rupee under pressure (exporters benefit)
    - Economy in mild slowdown (cyclicals penalized, defensives rewarded)
"""

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from stockify.core.constants import EXTERNAL_WEIGHTS
from stockify.core.numeric import round_half_up
from stockify.core.types import LayerScore, StockRecord
from stockify.layers.base import ComponentBuilder, collect_details, weighted_sum
from stockify.sectors.config import DEFAULT_SECTOR_CONFIG, SectorConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UniverseView:
    """
    Read-only per-run aggregates over the stock universe.

    Built once per scoring run; never mutated and never global.
    """

    sector_returns: dict[str, tuple[float, ...]] = field(default_factory=dict)
    industry_members: dict[str, tuple[StockRecord, ...]] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        universe: Sequence[StockRecord],
        sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
    ) -> "UniverseView":
        """
        Group the universe by sector group and by industry.

        Args:
            universe: Every stock in this run
            sectors: Sector lookup tables

        Returns:
            UniverseView
        """
        sector_returns: dict[str, list[float]] = defaultdict(list)
        industry_members: dict[str, list[StockRecord]] = defaultdict(list)

        for stock in universe:
            sector_returns[sectors.sector_group(stock.industry)].append(stock.return_3m)
            industry_members[stock.industry].append(stock)

        return cls(
            sector_returns={k: tuple(v) for k, v in sector_returns.items()},
            industry_members={k: tuple(v) for k, v in industry_members.items()},
        )

    def sector_average(self, sector_group: str) -> tuple[float, int]:
        """(average 3-month return, member count) for a sector group."""
        returns = self.sector_returns.get(sector_group, ())
        if not returns:
            return 0.0, 0
        return sum(returns) / len(returns), len(returns)

    def peers(self, stock: StockRecord) -> tuple[StockRecord, ...]:
        """Same-industry stocks other than this one (matched by name)."""
        return tuple(
            s for s in self.industry_members.get(stock.industry, ()) if s.name != stock.name
        )


def calculate_external_score(
    stock: StockRecord,
    universe: UniverseView | Sequence[StockRecord],
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> LayerScore:
    """
    Calculate the external layer for one stock.

    Args:
        stock: Stock to score
        universe: Prebuilt UniverseView, or the raw universe
        sectors: Sector lookup tables

    Returns:
        LayerScore with integer score
    """
    view = universe if isinstance(universe, UniverseView) else UniverseView.build(universe, sectors)

    components = (
        sector_momentum(stock, view, sectors),
        peer_performance(stock, view),
        macro_sensitivity(stock, sectors),
    )
    total = weighted_sum(components, EXTERNAL_WEIGHTS)

    return LayerScore(
        name="external",
        score=round_half_up(total),
        weight=1.0,
        details=collect_details(components),
        components=components,
        label=sectors.sector_group(stock.industry),
    )


def sector_momentum(
    stock: StockRecord,
    view: UniverseView,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> LayerScore:
    """How is the stock's sector group performing, and where does it rank?"""
    c = ComponentBuilder("sectorMomentum", base=50, weight=EXTERNAL_WEIGHTS["sectorMomentum"])

    group = sectors.sector_group(stock.industry)
    avg_return, members = view.sector_average(group)

    # Needs at least one other member besides the stock itself
    if members > 1:
        if avg_return > 5:
            c.add(15, "sectorStrong", f"{group} sector avg return: {avg_return:.1f}%")
        elif avg_return < -10:
            c.add(-15, "sectorWeak", f"{group} sector struggling")

        if stock.return_3m > avg_return + 5:
            c.add(10, "outperformingSector", "Outperforming sector peers")
        elif stock.return_3m < avg_return - 10:
            c.add(-10, "laggingSector", "Lagging sector peers")

    if stock.industry_pe > 35:
        c.add(-5, "expensiveSector", "Sector trading at high valuations")
    elif stock.industry_pe < 15:
        c.add(5, "cheapSector", "Sector trading at low valuations")

    return c.build(label=group)


def peer_performance(stock: StockRecord, view: UniverseView) -> LayerScore:
    """Same-industry comparison on return and PE."""
    c = ComponentBuilder("peerPerformance", base=50, weight=EXTERNAL_WEIGHTS["peerPerformance"])

    peers = view.peers(stock)
    if peers:
        avg_peer_return = sum(p.return_3m for p in peers) / len(peers)

        if avg_peer_return > 5:
            c.add(10, "peersStrong", "Industry peers performing well")

        if stock.return_3m > avg_peer_return + 10:
            c.add(15, "sectorLeader", "Leading peers significantly")
        elif stock.return_3m < avg_peer_return - 10:
            c.add(-10, "sectorLaggard", "Significantly lagging peers")

        peer_pes = sorted(p.pe for p in peers if p.pe > 0)
        if peer_pes and stock.pe > 0:
            median_pe = peer_pes[len(peer_pes) // 2]
            if stock.pe < median_pe * 0.7:
                c.add(10, "cheapVsPeers", "Trading at discount to peers")
            elif stock.pe > median_pe * 1.3:
                c.add(-5, "expensiveVsPeers", "Trading at premium to peers")

    c.note("peerCount", f"{len(peers)} industry peers")
    return c.build()


def macro_sensitivity(
    stock: StockRecord,
    sectors: SectorConfig = DEFAULT_SECTOR_CONFIG,
) -> LayerScore:
    """Exposure to rates, currency and the cycle under the assumed regime."""
    c = ComponentBuilder(
        "macroSensitivity", base=50, weight=EXTERNAL_WEIGHTS["macroSensitivity"]
    )

    industry = stock.industry
    cyclicality = sectors.cyclicality(industry)

    if sectors.is_rate_sensitive(industry):
        c.add(5, "rateSensitive", "May benefit from rate cuts")

    if sectors.is_currency_beneficiary(industry):
        c.add(10, "currencyBenefit", "Export oriented - benefits from weak rupee")

    if cyclicality == "high":
        c.add(-10, "cyclicalRisk", "Cyclical stock - vulnerable in slowdown")
    elif cyclicality == "low":
        c.add(10, "defensive", "Defensive business - resilient in slowdown")

    if stock.cyclical_triggers > 0:
        c.add(15, "cyclicalUpturn", "Cyclical upturn signals detected")

    return c.build(label=cyclicality)
