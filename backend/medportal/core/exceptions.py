"""
HTTP error factory used by services and routes.

Errors are raised at the point of failure. Each helper logs at a level
matching who caused the problem (client mistakes at INFO, access problems
at WARNING, server faults at ERROR) and returns the HTTPException to raise.
"""
from fastapi import HTTPException, status
import logging

logger = logging.getLogger(__name__)


class BusinessError:
    """Business-domain exceptions with safe (non-leaky) messages."""

    @staticmethod
    def not_found(resource: str = "Resource", resource_id: str | None = None) -> HTTPException:
        """
        404 for a missing record.

        Example:
            if not order:
                raise BusinessError.not_found("Order", order_id)
        """
        detail = f"{resource} with ID {resource_id} not found" if resource_id else f"{resource} not found"
        logger.info(f"Not found: {detail}")
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
        )

    @staticmethod
    def unauthorized(reason: str = "", detail: str = "Authentication failed") -> HTTPException:
        """
        Generic 401 for all authentication failures.

        SECURITY: The reason is logged, never returned. Same response for wrong
        password, unknown user, bad token, etc.
        """
        logger.warning(f"Unauthorized access attempt: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def forbidden(reason: str = "", detail: str = "Access denied") -> HTTPException:
        logger.warning(f"Forbidden access: {reason}")
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation / business logic errors.

        OK to include specific details here since the client caused the issue.
        Examples: "Order is not in pending status", "Insufficient stock for ..."
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """
        409 for resource conflicts.
        Example: "Product with SKU INS-HUM-001 already exists"
        """
        logger.info(f"Conflict: {detail}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """
        Generic 500 - logs actual error internally, hides from user.

        SECURITY: Never expose stack traces, SQL errors, or internal paths to users.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=True
            )
        else:
            logger.error("Internal server error occurred", exc_info=True)

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )

