"""
FloodWatch - Forms Module
Local validation for sign-in/sign-up and road report input.
"""

from floodwatch.forms.validation import (
    AuthForm,
    ReportForm,
    RainLevel,
    validate_auth_form,
    validate_report_form,
)

__all__ = [
    "AuthForm",
    "ReportForm",
    "RainLevel",
    "validate_auth_form",
    "validate_report_form",
]
