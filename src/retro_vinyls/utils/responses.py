"""JSON response helpers.

Every body returned by the API carries an ISO-8601 UTC `timestamp`.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi.responses import JSONResponse


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def json_response(payload: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    """
    Build a JSON response with the `timestamp` field added.

    Args:
        payload (Dict[str, Any]): JSON-compatible body.
        status_code (int): HTTP status code.

    Returns:
        JSONResponse: The response.
    """
    body = dict(payload)
    body["timestamp"] = timestamp()
    return JSONResponse(status_code=status_code, content=body)
