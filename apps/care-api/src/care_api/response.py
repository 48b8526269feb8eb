from __future__ import annotations

from collections.abc import Sequence

from care_api.observability import get_trace_id


def success_response(data: object, meta: dict[str, object] | None = None) -> dict[str, object]:
    return {"success": True, "data": data, "meta": meta or {}}


def error_response(
    code: str,
    message: str,
    details: Sequence[dict[str, object]] | None = None,
) -> dict[str, object]:
    """Error envelope; carries the request trace id so clients can quote it in reports."""
    error: dict[str, object] = {"code": code, "message": message}
    if details:
        error["details"] = list(details)
    trace_id = get_trace_id()
    if trace_id:
        error["trace_id"] = trace_id
    return {"success": False, "error": error}


def validation_details(errors: Sequence[dict]) -> list[dict[str, object]]:
    details: list[dict[str, object]] = []
    for err in errors:
        location = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        details.append({"field": ".".join(location), "message": err.get("msg", "")})
    return details
