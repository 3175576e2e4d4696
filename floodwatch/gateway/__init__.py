"""
FloodWatch - Gateway Module
Typed access to the hosted record store and the report submission sequence.
"""

from floodwatch.gateway.records import (
    Identity,
    Profile,
    RoadReport,
    EcoStat,
    EcoTip,
)
from floodwatch.gateway.data_gateway import RemoteDataGateway
from floodwatch.gateway.submission import (
    SubmissionOutcome,
    SubmissionStep,
    submit_report,
    reconcile_profile_total,
)

__all__ = [
    # Records
    "Identity",
    "Profile",
    "RoadReport",
    "EcoStat",
    "EcoTip",
    # Gateway
    "RemoteDataGateway",
    # Submission
    "SubmissionOutcome",
    "SubmissionStep",
    "submit_report",
    "reconcile_profile_total",
]
