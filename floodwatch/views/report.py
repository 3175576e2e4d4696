"""
Report page: validate the road condition form and run the submission.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from floodwatch.core.constants import DEFAULT_RAIN_LEVEL, KARACHI_CENTER
from floodwatch.core.exceptions import FormValidationError
from floodwatch.forms.validation import validate_report_form
from floodwatch.gateway.submission import SubmissionOutcome, SubmissionStep, submit_report
from floodwatch.views.base import Route, ViewController

logger = logging.getLogger(__name__)

SUBMIT_SUCCESS_MESSAGE = "Report submitted successfully! You saved {credit} kg CO₂ 🌱"


class ReportView(ViewController):
    """Protected page holding the report form."""

    route = Route.REPORT
    title = "Report Road Condition"
    requires_identity = True

    def __init__(self, context):
        super().__init__(context)
        self.fields: Dict[str, Any] = {
            "location": "",
            "latitude": KARACHI_CENTER[0],
            "longitude": KARACHI_CENTER[1],
            "description": "",
            "rain_level": DEFAULT_RAIN_LEVEL,
            "image_url": "",
        }
        self.outcome: Optional[SubmissionOutcome] = None

    @property
    def submitting(self) -> bool:
        return self.context.submission_in_flight

    def apply_geolocation(self, latitude: float, longitude: float) -> None:
        """Fill coordinates reported by the browser."""
        self.fields["latitude"] = latitude
        self.fields["longitude"] = longitude
        self.notifier.success("Location detected!")

    def geolocation_failed(self, reason: Optional[str] = None) -> None:
        logger.info(f"Geolocation failed: {reason or 'unknown'}")
        self.notifier.error("Unable to get your location")

    async def submit(self, raw_fields: Mapping[str, Any]) -> Optional[SubmissionOutcome]:
        """
        Validate and submit a report.

        Args:
            raw_fields: Form values as entered

        Returns:
            SubmissionOutcome, or None when nothing was sent (not allowed,
            invalid input, or a submission already in flight)
        """
        self.fields.update({k: v for k, v in raw_fields.items() if k in self.fields})

        if self.halted or self.identity is None:
            return None
        if self.context.submission_in_flight:
            logger.info("Submission already in flight; ignoring duplicate submit")
            return None

        try:
            form = validate_report_form(raw_fields)
        except FormValidationError as e:
            self.notifier.error(e.message)
            return None

        credit = self.context.settings.eco_credit_per_report
        self.context.submission_in_flight = True
        try:
            outcome = await submit_report(self.context.gateway, self.identity, form, credit=credit)
        finally:
            self.context.submission_in_flight = False

        self.outcome = outcome
        if outcome.succeeded:
            self.notifier.success(SUBMIT_SUCCESS_MESSAGE.format(credit=credit))
            self.navigate(Route.MAP)
        elif outcome.failed_step == SubmissionStep.REPORT:
            self.notifier.error(outcome.error or "Failed to submit report")
        else:
            # The report is stored; only the eco credit is missing
            self.notifier.error(f"Report saved, but your eco credit was not recorded: {outcome.error}")
        return outcome
