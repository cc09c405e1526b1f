"""
Audit logging for security-critical and money-moving operations.

Every entry is a single JSON object on the "audit" logger so it can be
shipped to centralized logging separately from application logs.

LOGGING SENSITIVE DATA: never log passwords, tokens or card data.
"""
import logging
import json
from datetime import datetime, timezone
from typing import Any, Optional, Dict

# Separate logger for audit events (can be shipped to centralized logging)
audit_logger = logging.getLogger("audit")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AuditLog:
    """Central audit logging for security-critical events."""

    @staticmethod
    def log_authentication(
        action: str,  # "login", "register", "failed_login"
        email: str,
        success: bool,
        reason: str = "",
    ):
        """
        Usage:
            AuditLog.log_authentication("login", "user@example.com", True)
            AuditLog.log_authentication("failed_login", "user@example.com", False, reason="Invalid password")
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"auth.{action}",
            "email": email,
            "success": success,
        }

        if reason and not success:
            log_entry["reason"] = reason

        audit_logger.info(json.dumps(log_entry))

    @staticmethod
    def log_action(
        action: str,  # "create", "cancel", "fulfill", "update", "delete"
        resource_type: str,  # "order", "product", "payment", "user"
        resource_id: str,
        actor: Optional[str] = None,
        changes: Optional[Dict[str, Any]] = None,
    ):
        """
        Log business-critical actions.

        `actor` is the user email when a logged-in user made the change, or a
        system source such as "stripe_webhook".

        Usage:
            AuditLog.log_action("cancel", "order", order.id, actor=current_user.email)
            AuditLog.log_action("status_change", "payment", payment.id, actor="stripe_webhook",
                                changes={"status": "SUCCEEDED"})
        """
        log_entry = {
            "timestamp": _now(),
            "event_type": f"{resource_type}.{action}",
            "actor": actor or "anonymous",
            "resource_id": resource_id,
        }

        if changes:
            log_entry["changes"] = changes

        audit_logger.info(json.dumps(log_entry, default=str))

    @staticmethod
    def log_access_denied(
        action: str,
        resource_type: str,
        user_id: Optional[str],
        reason: str,
    ):
        """
        Log denied access attempts (potential attacks).

        Usage:
            AuditLog.log_access_denied("write", "product", user.id, "Admin role required")
        """
        log_entry = {
            "timestamp": _now(),
            "event_severity": "WARNING",
            "event_type": "access_denied",
            "action": action,
            "resource_type": resource_type,
            "user_id": user_id,
            "reason": reason,
        }

        audit_logger.warning(json.dumps(log_entry))

    @staticmethod
    def log_permission_change(
        user_id: str,
        granted_by: str,
        role: str,
    ):
        log_entry = {
            "timestamp": _now(),
            "event_type": "permissions.changed",
            "user_id": user_id,
            "granted_by": granted_by,
            "role": role,
        }

        audit_logger.info(json.dumps(log_entry))
