"""
Tests for the report submission sequence and ledger reconciliation
"""
import pytest

import sys
sys.path.insert(0, '.')

from floodwatch.forms.validation import validate_report_form
from floodwatch.gateway.submission import (
    SubmissionStep,
    credit_profile,
    reconcile_profile_total,
    submit_report,
)


class TestSubmitReport:
    """Test suite for the three-step submission."""

    @pytest.fixture(autouse=True)
    def _form(self, valid_report_fields):
        self.form = validate_report_form(valid_report_fields)

    @pytest.mark.asyncio
    async def test_success_writes_in_order(self, store, gateway, identity):
        """Test report, eco stat, then profile total are written."""
        outcome = await submit_report(gateway, identity, self.form)

        assert outcome.succeeded
        assert outcome.completed_steps == [
            SubmissionStep.REPORT,
            SubmissionStep.ECO_STAT,
            SubmissionStep.PROFILE_TOTAL,
        ]
        assert store.writes == [
            ("road_reports", "insert"),
            ("eco_stats", "insert"),
            ("profiles", "update"),
        ]

    @pytest.mark.asyncio
    async def test_success_credits_profile(self, store, gateway, identity):
        """Test a seeded 10 kg profile ends at 11.5 kg with one 1.5 kg ledger entry."""
        outcome = await submit_report(gateway, identity, self.form)

        assert outcome.profile.total_co2_saved == 11.5
        assert store.tables["profiles"][0]["total_co2_saved"] == 11.5
        stats = store.tables["eco_stats"]
        assert len(stats) == 1
        assert stats[0]["co2_saved"] == 1.5
        assert stats[0]["action_type"] == "road_report"

    @pytest.mark.asyncio
    async def test_report_failure_stops_everything(self, store, gateway, identity):
        """Test a failed report insert issues no further writes."""
        store.fail("road_reports", "insert", "duplicate key value violates unique constraint")

        outcome = await submit_report(gateway, identity, self.form)

        assert outcome.failed_step == SubmissionStep.REPORT
        assert outcome.error == "duplicate key value violates unique constraint"
        assert outcome.report_saved is False
        assert store.writes == [("road_reports", "insert")]
        assert store.tables["eco_stats"] == []

    @pytest.mark.asyncio
    async def test_eco_stat_failure_keeps_report(self, store, gateway, identity):
        """Test the report stays when the credit cannot be appended."""
        store.fail("eco_stats", "insert")

        outcome = await submit_report(gateway, identity, self.form)

        assert outcome.failed_step == SubmissionStep.ECO_STAT
        assert outcome.report_saved
        assert len(store.tables["road_reports"]) == 3
        assert store.tables["profiles"][0]["total_co2_saved"] == 10.0
        assert outcome.ledger_consistent

    @pytest.mark.asyncio
    async def test_profile_failure_reported_inconsistent(self, store, gateway, identity):
        """Test a failed accumulator write is flagged as ledger drift."""
        store.fail("profiles", "update")

        outcome = await submit_report(gateway, identity, self.form)

        assert outcome.failed_step == SubmissionStep.PROFILE_TOTAL
        assert outcome.ledger_consistent is False
        assert len(store.tables["eco_stats"]) == 1
        assert outcome.to_dict()["completed_steps"] == ["report", "eco_stat"]

    @pytest.mark.asyncio
    async def test_missing_profile_not_created(self, store, gateway, identity):
        """Test a user without a profile row gets no accumulator update."""
        store.tables["profiles"] = []

        outcome = await submit_report(gateway, identity, self.form)

        assert outcome.succeeded
        assert outcome.profile is None
        assert ("profiles", "update") not in store.writes

    @pytest.mark.asyncio
    async def test_custom_credit(self, store, gateway, identity):
        """Test the credit amount is configurable."""
        outcome = await submit_report(gateway, identity, self.form, credit=2.0)

        assert outcome.profile.total_co2_saved == 12.0


class TestCreditProfile:
    """Test suite for the accumulator read-modify-write."""

    @pytest.mark.asyncio
    async def test_adds_to_existing_total(self, gateway):
        """Test the amount is added to the stored total."""
        profile = await credit_profile(gateway, "user-ayesha", 1.5)
        assert profile.total_co2_saved == 11.5

    @pytest.mark.asyncio
    async def test_missing_profile(self, gateway):
        """Test no profile yields None."""
        assert await credit_profile(gateway, "user-nobody", 1.5) is None

    @pytest.mark.asyncio
    async def test_negative_total_still_credited(self, store, gateway):
        """Test a negative stored total is credited, not treated as a missing profile."""
        store.tables["profiles"][0]["total_co2_saved"] = -3.0

        profile = await credit_profile(gateway, "user-ayesha", 1.5)

        assert profile is not None
        assert profile.total_co2_saved == -1.5
        assert store.tables["profiles"][0]["total_co2_saved"] == -1.5


class TestReconcile:
    """Test suite for profile/ledger reconciliation."""

    @pytest.mark.asyncio
    async def test_repairs_drift(self, store, gateway, identity, valid_report_fields):
        """Test a failed accumulator write is repaired from the ledger."""
        store.tables["profiles"][0]["total_co2_saved"] = 0.0
        store.fail("profiles", "update")
        await submit_report(gateway, identity, validate_report_form(valid_report_fields))
        store.failures.clear()

        total = await reconcile_profile_total(gateway, "user-ayesha")

        assert total == 1.5
        assert store.tables["profiles"][0]["total_co2_saved"] == 1.5

    @pytest.mark.asyncio
    async def test_idempotent(self, store, gateway):
        """Test a second run issues no write."""
        store.tables["eco_stats"] = [
            {"id": 1, "user_id": "user-ayesha", "co2_saved": 1.5, "action_type": "road_report"},
            {"id": 2, "user_id": "user-ayesha", "co2_saved": 1.5, "action_type": "road_report"},
        ]

        first = await reconcile_profile_total(gateway, "user-ayesha")
        writes_after_first = len(store.writes)
        second = await reconcile_profile_total(gateway, "user-ayesha")

        assert first == second == 3.0
        assert writes_after_first == 1
        assert len(store.writes) == 1

    @pytest.mark.asyncio
    async def test_missing_profile(self, gateway):
        """Test nothing to reconcile without a profile."""
        assert await reconcile_profile_total(gateway, "user-nobody") is None
