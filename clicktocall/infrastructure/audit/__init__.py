"""
Diagnostic activity logging shown to the user when debug logging is on.
"""

from clicktocall.infrastructure.audit.activity_log import ActivityLog, activity_log

__all__ = ["ActivityLog", "activity_log"]
