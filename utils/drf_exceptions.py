from __future__ import annotations

from typing import Any

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from programmes.storage import StoreError, StoreUnavailable


def _store_error_response(exc: StoreError) -> Response:
    if isinstance(exc, StoreUnavailable):
        return Response(
            {"detail": str(exc) or "Firebase admin not initialized", "code": "firebase_unavailable"},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return Response({"detail": str(exc), "code": "invalid_path"}, status=status.HTTP_400_BAD_REQUEST)


def drf_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Global DRF exception handler.

    Normalizes errors to:
      {"detail": str, "code"?: str, "fields"?: dict}

    - ValidationError => fields populated, code "validation_error"
    - APIException => code populated
    - StoreError => 400 invalid_path, StoreUnavailable => 503 firebase_unavailable

    Anything else (e.g. a rejected Realtime Database write) is left to Django.
    """
    if isinstance(exc, StoreError):
        return _store_error_response(exc)

    resp = exception_handler(exc, context)
    if resp is None:
        return None

    data: dict[str, Any] = {}
    raw = getattr(resp, "data", None)

    if isinstance(raw, dict):
        if "detail" in raw and isinstance(raw.get("detail"), (str, list, dict)):
            data["detail"] = raw.get("detail")
        else:
            # Serializer errors: a dict of field -> messages
            data["detail"] = "Invalid request"
            data["fields"] = raw
    elif isinstance(raw, list):
        data["detail"] = "Invalid request"
        data["fields"] = {"non_field_errors": raw}
    elif raw is None:
        data["detail"] = "Request failed"
    else:
        data["detail"] = str(raw)

    if isinstance(exc, APIException):
        code = exc.get_codes()
        if isinstance(code, str):
            data["code"] = code
        elif isinstance(code, (dict, list)):
            data["code"] = "validation_error"
        else:
            data["code"] = getattr(exc, "default_code", "error")

    if isinstance(data.get("detail"), (list, dict)):
        data["detail"] = "Invalid request"

    resp.data = data

    if int(getattr(resp, "status_code", 0) or 0) >= 500 and not data.get("detail"):
        resp.data = {"detail": "Server error", "code": "server_error"}

    return resp
