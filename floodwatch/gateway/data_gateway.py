"""
Remote data gateway over the Supabase record store.

Typed accessors for profiles, road reports, eco stats and eco tips. Every call
is one round trip: no cache, no retry, no optimistic update.
"""

import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from postgrest.exceptions import APIError
from pydantic import BaseModel, ValidationError

from floodwatch.core.constants import (
    TABLE_ECO_STATS,
    TABLE_ECO_TIPS,
    TABLE_PROFILES,
    TABLE_ROAD_REPORTS,
)
from floodwatch.core.exceptions import GatewayReadError, GatewayWriteError
from floodwatch.forms.validation import ReportForm
from floodwatch.gateway.records import EcoStat, EcoTip, Profile, RoadReport

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

# PostgREST answers a maybe_single() miss with 204 on some client versions
NO_CONTENT_CODE = "204"


def _error_message(error: Exception) -> str:
    """Best-effort human readable message for a store/transport error."""
    message = getattr(error, "message", None)
    return str(message) if message else str(error)


def _parse_row(model: Type[RecordT], table: str, row: Any) -> Optional[RecordT]:
    """Validate one row; shape mismatches are logged and yield None."""
    if row is None:
        return None
    try:
        return model.model_validate(row)
    except ValidationError as e:
        logger.warning(f"Dropping malformed {table} row: {e.errors()}")
        return None


def _parse_rows(model: Type[RecordT], table: str, rows: Any) -> List[RecordT]:
    """Validate a list of rows, skipping the malformed ones."""
    records = []
    for row in rows or []:
        record = _parse_row(model, table, row)
        if record is not None:
            records.append(record)
    return records


def _first_row(response: Any) -> Optional[Dict[str, Any]]:
    data = getattr(response, "data", None)
    if isinstance(data, list):
        return data[0] if data else None
    return data


class RemoteDataGateway:
    """
    Typed accessors over the four record collections.

    Read failures raise GatewayReadError ("no rows" is None / []); write
    failures raise GatewayWriteError with the store's message.
    """

    def __init__(self, client: Any):
        """
        Initialize gateway.

        Args:
            client: Supabase async client (anything exposing table(name)
                with the PostgREST query builder)
        """
        self._client = client

    async def _read(self, table: str, query: Any) -> Any:
        try:
            return await query.execute()
        except APIError as e:
            if str(getattr(e, "code", "")) == NO_CONTENT_CODE:
                return None
            logger.warning(f"Read from {table} failed: {_error_message(e)}")
            raise GatewayReadError(table, _error_message(e)) from e
        except httpx.HTTPError as e:
            logger.warning(f"Read from {table} failed: {e}")
            raise GatewayReadError(table, _error_message(e)) from e

    async def _write(self, table: str, query: Any) -> Any:
        try:
            return await query.execute()
        except (APIError, httpx.HTTPError) as e:
            logger.error(f"Write to {table} failed: {_error_message(e)}")
            raise GatewayWriteError(table, _error_message(e)) from e

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_profile(self, user_id: str) -> Optional[Profile]:
        """Fetch the profile owned by user_id, or None when there is no row."""
        query = (
            self._client.table(TABLE_PROFILES)
            .select("*")
            .eq("id", user_id)
            .maybe_single()
        )
        response = await self._read(TABLE_PROFILES, query)
        if response is None:
            return None
        return _parse_row(Profile, TABLE_PROFILES, _first_row(response))

    async def fetch_reports(self, owner_id: Optional[str] = None) -> List[RoadReport]:
        """
        Fetch road reports, newest first.

        Args:
            owner_id: Only reports created by this user; all reports if None

        Returns:
            List of RoadReport
        """
        query = self._client.table(TABLE_ROAD_REPORTS).select("*")
        if owner_id is not None:
            query = query.eq("user_id", owner_id)
        query = query.order("created_at", desc=True)

        response = await self._read(TABLE_ROAD_REPORTS, query)
        reports = _parse_rows(RoadReport, TABLE_ROAD_REPORTS, getattr(response, "data", None))
        logger.info(f"Fetched {len(reports)} reports (owner={owner_id or 'all'})")
        return reports

    async def fetch_eco_stats(self, owner_id: str) -> List[EcoStat]:
        """Fetch the eco ledger of one user, newest first."""
        query = (
            self._client.table(TABLE_ECO_STATS)
            .select("*")
            .eq("user_id", owner_id)
            .order("created_at", desc=True)
        )
        response = await self._read(TABLE_ECO_STATS, query)
        return _parse_rows(EcoStat, TABLE_ECO_STATS, getattr(response, "data", None))

    async def fetch_eco_tip(self) -> Optional[EcoTip]:
        """Fetch one arbitrary eco tip."""
        query = self._client.table(TABLE_ECO_TIPS).select("*").limit(1).maybe_single()
        response = await self._read(TABLE_ECO_TIPS, query)
        if response is None:
            return None
        return _parse_row(EcoTip, TABLE_ECO_TIPS, _first_row(response))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert_report(self, owner_id: str, form: ReportForm) -> RoadReport:
        """
        Insert a road report built from validated form values.

        Args:
            owner_id: Reporting user
            form: Validated report input

        Returns:
            The stored RoadReport (as echoed back by the store when available)
        """
        payload = {
            "user_id": owner_id,
            "location": form.location,
            "latitude": form.latitude,
            "longitude": form.longitude,
            "description": form.description,
            "rain_level": form.rain_level.value,
            "image_url": form.image_url,
        }
        response = await self._write(
            TABLE_ROAD_REPORTS,
            self._client.table(TABLE_ROAD_REPORTS).insert(payload),
        )
        stored = _parse_row(RoadReport, TABLE_ROAD_REPORTS, _first_row(response))
        report = stored or RoadReport.model_validate(payload)
        logger.info(f"Report inserted for {owner_id} at ({form.latitude}, {form.longitude})")
        return report

    async def insert_eco_stat(
        self,
        owner_id: str,
        co2_saved: float,
        action_type: str
    ) -> EcoStat:
        """Append one eco ledger entry."""
        payload = {
            "user_id": owner_id,
            "co2_saved": co2_saved,
            "action_type": action_type,
        }
        response = await self._write(
            TABLE_ECO_STATS,
            self._client.table(TABLE_ECO_STATS).insert(payload),
        )
        stored = _parse_row(EcoStat, TABLE_ECO_STATS, _first_row(response))
        logger.info(f"Eco stat appended for {owner_id}: {co2_saved} kg ({action_type})")
        return stored or EcoStat.model_validate(payload)

    async def update_profile_total(self, user_id: str, total: float) -> Optional[Profile]:
        """Overwrite the profile accumulator with total."""
        response = await self._write(
            TABLE_PROFILES,
            self._client.table(TABLE_PROFILES)
            .update({"total_co2_saved": total})
            .eq("id", user_id),
        )
        logger.info(f"Profile {user_id} total set to {total}")
        return _parse_row(Profile, TABLE_PROFILES, _first_row(response))
