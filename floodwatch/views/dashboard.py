"""
Dashboard: the signed-in user's eco impact, reports and a tip.
"""

import logging
from typing import List, Optional

from floodwatch.core.constants import IMPACT_LEVELS
from floodwatch.core.exceptions import GatewayError, GatewayReadError
from floodwatch.gateway.records import EcoStat, EcoTip, Profile, RoadReport
from floodwatch.gateway.submission import reconcile_profile_total
from floodwatch.views.base import Route, ViewController, ViewStatus

logger = logging.getLogger(__name__)


def impact_level(report_count: int) -> tuple:
    """(label, badge) for the number of reports submitted."""
    for minimum, label, badge in IMPACT_LEVELS:
        if report_count >= minimum:
            return label, badge
    return IMPACT_LEVELS[-1][1], IMPACT_LEVELS[-1][2]


class DashboardView(ViewController):
    """Protected page; reads profile, own reports, own eco stats and one tip."""

    route = Route.DASHBOARD
    title = "My Eco Impact"
    requires_identity = True

    def __init__(self, context):
        super().__init__(context)
        self.profile: Optional[Profile] = None
        self.reports: List[RoadReport] = []
        self.eco_stats: List[EcoStat] = []
        self.eco_tip: Optional[EcoTip] = None

    async def load(self) -> None:
        gateway = self.context.gateway
        user_id = self.identity.id

        # Sequential reads; the gate is re-checked before each one
        steps = (
            ("profile", lambda: gateway.fetch_profile(user_id)),
            ("reports", lambda: gateway.fetch_reports(owner_id=user_id)),
            ("eco_stats", lambda: gateway.fetch_eco_stats(user_id)),
            ("eco_tip", gateway.fetch_eco_tip),
        )
        for attribute, fetch in steps:
            if self.halted:
                logger.info(f"Dashboard load halted before {attribute}")
                return
            try:
                value = await fetch()
            except GatewayReadError as e:
                self.read_failed(e)
                continue
            if self.halted:
                # Identity went away while the read was in flight
                return
            setattr(self, attribute, value)

        self.status = ViewStatus.POPULATED if self.profile else ViewStatus.EMPTY

    @property
    def co2_goal(self) -> float:
        return self.context.settings.co2_goal_kg

    @property
    def total_co2(self) -> float:
        return self.profile.total_co2_saved if self.profile else 0.0

    @property
    def progress_percent(self) -> float:
        if self.co2_goal <= 0:
            return 100.0
        return max(min(self.total_co2 / self.co2_goal * 100, 100.0), 0.0)

    @property
    def report_count(self) -> int:
        return len(self.reports)

    @property
    def impact(self) -> tuple:
        return impact_level(self.report_count)

    async def reconcile(self) -> Optional[float]:
        """Bring the profile total back in line with the eco ledger."""
        if self.halted or self.identity is None:
            return None
        try:
            total = await reconcile_profile_total(self.context.gateway, self.identity.id)
        except GatewayError as e:
            self.notifier.error(e.message)
            return None

        if total is None:
            self.notifier.error("No profile found for your account")
        else:
            self.notifier.success(f"Eco impact recalculated: {total:.1f} kg CO₂")
        return total
