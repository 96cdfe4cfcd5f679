"""Error response builders for MCP tool handlers.

Structured errors carry a corrective action so that an agent can recover
(fix credentials, check the URL, retry later) without a human reading
the server log.
"""

import mcp.types as types

from ...exceptions import TransportError


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (authentication_failed, not_found,
            connection_error, validation_error, filesystem_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("not_found", "Remote folder missing", "Run webdav_test_connection.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def translate_transport_error(error: TransportError) -> types.CallToolResult:
    """Translate a WebDAV transport failure to a structured error response.

    The HTTP status decides the category; a missing status means the
    server was never reached.
    """
    message = str(error)

    match error.status_code:
        case None:
            return build_error_response(
                "connection_error",
                message,
                "Check REVOLVER_WEBDAV_URL and network connectivity, then retry.",
            )
        case 401 | 403:
            return build_error_response(
                "authentication_failed",
                message,
                "Check REVOLVER_WEBDAV_USERNAME and use an application "
                "password for REVOLVER_WEBDAV_PASSWORD.",
            )
        case 404:
            return build_error_response(
                "not_found",
                message,
                "Run webdav_test_connection to create the remote folder, "
                "or check REVOLVER_WEBDAV_REMOTE_PATH.",
            )
        case 507:
            return build_error_response(
                "insufficient_storage",
                message,
                "Free up space on the WebDAV server and retry.",
            )
        case status if status >= 500:
            return build_error_response(
                "server_error",
                message,
                "The WebDAV server failed; retry later.",
            )
        case _:
            return build_error_response(
                "request_failed",
                message,
                "Check the WebDAV configuration and retry.",
            )
