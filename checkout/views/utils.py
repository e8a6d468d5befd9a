"""
Shared helpers for the checkout views.
Extracted to avoid circular imports.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from django.http import HttpRequest, HttpResponse, JsonResponse

CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"
CORS_ALLOW_METHODS = "POST, OPTIONS"
CORS_MAX_AGE = "86400"


def _with_cors(resp: HttpResponse, request: HttpRequest) -> HttpResponse:
    """Echo the caller's Origin (the storefront may be served from several hosts)."""
    origin = (request.META.get("HTTP_ORIGIN") or "").strip() or "*"
    resp["Access-Control-Allow-Origin"] = origin
    resp["Vary"] = "Origin"
    resp["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
    resp["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    resp["Access-Control-Max-Age"] = CORS_MAX_AGE
    return resp


def _json_response(payload: Dict[str, Any], status: int = 200, request: Optional[HttpRequest] = None) -> JsonResponse:
    """JsonResponse with CORS reflected when we have a request context."""
    resp = JsonResponse(payload, status=status)
    if request is not None:
        resp = _with_cors(resp, request)
    return resp


def _method_not_allowed(request: Optional[HttpRequest] = None) -> HttpResponse:
    resp = HttpResponse("Method Not Allowed", status=405)
    if request is not None:
        resp = _with_cors(resp, request)
    return resp


def _parse_json_body(request: HttpRequest) -> Optional[Dict[str, Any]]:
    """JSON object body, {} for an empty body, None when it is not a JSON object."""
    raw = request.body.decode("utf-8", errors="replace") if request.body else ""
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None
