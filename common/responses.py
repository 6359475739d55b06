from typing import Any, Dict, Optional


def success_response(data: Any, message: str = "Success") -> Dict[str, Any]:
    """
    Standard success response envelope.
    """
    return {"message": message, "data": data}


def error_response(message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    """
    Standard error response envelope.
    """
    payload: Dict[str, Any] = {"message": message}
    if details is not None:
        payload["details"] = details
    return payload
