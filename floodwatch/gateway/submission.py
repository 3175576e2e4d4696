"""
Report submission as an explicit sequence of store writes.

Steps run strictly in order and each starts only when the previous one
succeeded:

1. insert the road report
2. append the eco credit to the ledger
3. read the profile accumulator and write back accumulator + credit

The store offers no transaction across these calls. A failure after step 1
leaves the report without a credit; a failure after step 2 leaves the ledger
ahead of the profile total. Nothing is rolled back: the outcome records where
the sequence stopped, and reconcile_profile_total() brings the accumulator back
in line with the ledger (idempotent, safe to repeat).
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from floodwatch.core.constants import ECO_ACTION_ROAD_REPORT, ECO_CREDIT_PER_REPORT
from floodwatch.core.exceptions import GatewayError
from floodwatch.forms.validation import ReportForm
from floodwatch.gateway.data_gateway import RemoteDataGateway
from floodwatch.gateway.records import EcoStat, Identity, Profile, RoadReport

logger = logging.getLogger(__name__)


class SubmissionStep(str, Enum):
    """Writes issued for one report submission, in order."""
    REPORT = "report"
    ECO_STAT = "eco_stat"
    PROFILE_TOTAL = "profile_total"


@dataclass
class SubmissionOutcome:
    """Where a submission got to, and what it wrote."""
    report: Optional[RoadReport] = None
    eco_stat: Optional[EcoStat] = None
    profile: Optional[Profile] = None
    completed_steps: List[SubmissionStep] = field(default_factory=list)
    failed_step: Optional[SubmissionStep] = None
    error: Optional[str] = None
    credit: float = ECO_CREDIT_PER_REPORT

    @property
    def succeeded(self) -> bool:
        return self.failed_step is None

    @property
    def report_saved(self) -> bool:
        return SubmissionStep.REPORT in self.completed_steps

    @property
    def ledger_consistent(self) -> bool:
        """False when a credit reached the ledger but not the profile total."""
        return not (
            SubmissionStep.ECO_STAT in self.completed_steps
            and self.failed_step == SubmissionStep.PROFILE_TOTAL
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "succeeded": self.succeeded,
            "completed_steps": [s.value for s in self.completed_steps],
            "failed_step": self.failed_step.value if self.failed_step else None,
            "error": self.error,
            "credit": self.credit,
            "report": self.report.to_dict() if self.report else None,
            "profile_total": self.profile.total_co2_saved if self.profile else None,
        }


async def credit_profile(
    gateway: RemoteDataGateway,
    user_id: str,
    amount: float
) -> Optional[Profile]:
    """
    Add amount to the profile accumulator (read-modify-write, no CAS).

    Returns:
        The updated profile, or None when the user has no profile row
    """
    profile = await gateway.fetch_profile(user_id)
    if profile is None:
        logger.warning(f"No profile for {user_id}; accumulator not updated")
        return None

    new_total = profile.total_co2_saved + amount
    updated = await gateway.update_profile_total(user_id, new_total)
    return updated or profile.model_copy(update={"total_co2_saved": new_total})


async def submit_report(
    gateway: RemoteDataGateway,
    identity: Identity,
    form: ReportForm,
    credit: float = ECO_CREDIT_PER_REPORT
) -> SubmissionOutcome:
    """
    Run the three-step report submission.

    Args:
        gateway: Data gateway bound to the user's client
        identity: Submitting user
        form: Validated report input
        credit: kg CO2 credited for the report

    Returns:
        SubmissionOutcome; failures are recorded, not raised
    """
    outcome = SubmissionOutcome(credit=credit)
    step = SubmissionStep.REPORT

    try:
        outcome.report = await gateway.insert_report(identity.id, form)
        outcome.completed_steps.append(step)

        step = SubmissionStep.ECO_STAT
        outcome.eco_stat = await gateway.insert_eco_stat(
            identity.id, credit, ECO_ACTION_ROAD_REPORT
        )
        outcome.completed_steps.append(step)

        step = SubmissionStep.PROFILE_TOTAL
        outcome.profile = await credit_profile(gateway, identity.id, credit)
        outcome.completed_steps.append(step)
    except GatewayError as e:
        outcome.failed_step = step
        outcome.error = e.message
        logger.error(
            f"Report submission for {identity.id} stopped at {step.value}: {e.message} "
            f"(completed: {[s.value for s in outcome.completed_steps]})"
        )
        return outcome

    logger.info(f"Report submission for {identity.id} complete (+{credit} kg)")
    return outcome


async def reconcile_profile_total(gateway: RemoteDataGateway, user_id: str) -> Optional[float]:
    """
    Set the profile accumulator to the sum of the user's eco ledger.

    Writes only when the two disagree, so repeated runs are no-ops.

    Returns:
        The reconciled total, or None when the user has no profile row
    """
    profile = await gateway.fetch_profile(user_id)
    if profile is None:
        logger.warning(f"No profile for {user_id}; nothing to reconcile")
        return None

    stats = await gateway.fetch_eco_stats(user_id)
    ledger_total = round(sum(s.co2_saved for s in stats), 6)

    if abs(profile.total_co2_saved - ledger_total) < 1e-9:
        logger.info(f"Profile {user_id} already matches ledger ({ledger_total} kg)")
        return ledger_total

    logger.info(
        f"Reconciling profile {user_id}: {profile.total_co2_saved} -> {ledger_total} kg"
    )
    await gateway.update_profile_total(user_id, ledger_total)
    return ledger_total
