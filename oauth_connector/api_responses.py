"""
Standardized JSON responses for the connector's API endpoints.
"""

from typing import Dict, Any, Optional
from datetime import datetime, timezone
from flask import jsonify


class APIResponse:
    """Builds the envelope shared by every JSON response."""

    API_VERSION = "1.0"

    @staticmethod
    def _timestamp() -> str:
        return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')

    @staticmethod
    def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
        """
        Create a standardized success response.

        Args:
            data: Response data payload
            message: Optional success message

        Returns:
            Standardized success response dictionary
        """
        response = {
            "success": True,
            "version": APIResponse.API_VERSION,
            "timestamp": APIResponse._timestamp(),
            "data": data
        }

        if message:
            response["message"] = message

        return response

    @staticmethod
    def error(code: str, message: str, details: Optional[Dict[str, Any]] = None,
              status_code: int = 400) -> Dict[str, Any]:
        """
        Create a standardized error response.

        Args:
            code: Error code identifier
            message: Human-readable error message
            details: Optional error details
            status_code: HTTP status code

        Returns:
            Standardized error response dictionary
        """
        response = {
            "success": False,
            "version": APIResponse.API_VERSION,
            "timestamp": APIResponse._timestamp(),
            "error": {
                "code": code,
                "message": message,
                "status_code": status_code
            }
        }

        if details:
            response["error"]["details"] = details

        return response


class ErrorCodes:
    """Error codes used in API error responses."""

    INTEGRATION_NOT_FOUND = "INTEGRATION_NOT_FOUND"
    UNKNOWN_ACTION = "UNKNOWN_ACTION"
    INVALID_REQUEST = "INVALID_REQUEST"
    NOT_FOUND = "NOT_FOUND"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def create_flask_response(response_data: Dict[str, Any], status_code: int = 200):
    """
    Create a Flask JSON response with proper headers and status code.

    Args:
        response_data: Response data dictionary
        status_code: HTTP status code

    Returns:
        Flask JSON response
    """
    response = jsonify(response_data)
    response.status_code = status_code
    response.headers['X-API-Version'] = APIResponse.API_VERSION
    return response
