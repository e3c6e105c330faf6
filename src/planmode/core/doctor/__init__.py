"""Consistency checker ("doctor") for installed packages.

Public API::

    from planmode.core.doctor import run_doctor

    result = run_doctor(project_root)
    if not result.healthy:
        ...
"""

from planmode.core.doctor.checker import run_doctor
from planmode.core.doctor.models import DiagnosticIssue, DoctorResult, Severity

__all__ = [
    "DiagnosticIssue",
    "DoctorResult",
    "Severity",
    "run_doctor",
]
