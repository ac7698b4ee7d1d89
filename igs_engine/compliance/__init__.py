"""
Solution Compliance Layer

Version: compliance_v1
"""

from .check import (
    ComplianceIssue,
    ISSUE_GROUPS,
    GROUP_PENALTIES,
    HARD_REJECTION_CODES,
    check_compliance,
    collect_issues,
    calculate_solution_compliance_score,
    is_hard_rejection,
)

__all__ = [
    "ComplianceIssue",
    "ISSUE_GROUPS",
    "GROUP_PENALTIES",
    "HARD_REJECTION_CODES",
    "check_compliance",
    "collect_issues",
    "calculate_solution_compliance_score",
    "is_hard_rejection",
]

__version__ = "compliance_v1"
