"""HTTP handlers.

Handlers parse request parameters, call the search/geometry/lease components, and translate their
errors into status codes. Internal error details are logged, never returned to the client.
"""

from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from time import monotonic
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from starlette.concurrency import run_in_threadpool

from src.app import App
from src.auth.api_keys import ApiKey, ApiKeyError, check_permission, client_ip, verify_api_key
from src.burials.expiration import RenewalRequest
from src.db.audit_log import AuditEntry, write_audit_entry
from src.db.burials import BurialNotFoundError, fetch_expired, fetch_expiring, renew_burial
from src.db.cemeteries import fetch_external_cemeteries
from src.db.permits import (
    PermitExistsError,
    PreferredPlotNotFoundError,
    get_permit,
    permit_status,
    receive_permit,
)
from src.db.pool import get_conn
from src.db.query import fetch_all
from src.geometry.polygons import (
    centroid,
    edge_lengths,
    is_polygon,
    normalize_angle,
    template_rectangle,
)
from src.intent.parser import parse_query_with_source
from src.permits.schema import PermitSubmission
from src.sql.builder import (
    build_basic_search_query,
    build_external_plots_query,
    build_search_query,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_container(request: Request) -> App:
    """The application container attached at startup."""

    return request.app.state.container


def _today() -> date:
    return datetime.now(UTC).date()


def _error(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse(jsonable_encoder({"error": message, **extra}), status_code=status_code)


def _with_center(row: dict[str, Any]) -> dict[str, Any]:
    """Attach the polygon center of a plot so the locator map can frame it."""

    coords = row.get("map_coordinates")
    if is_polygon(coords):
        return {**row, "center": list(centroid(coords))}
    return row


class TemplateRequest(BaseModel):
    """A fixed-footprint plot placed at a map click."""

    model_config = ConfigDict(extra="forbid")

    center: tuple[float, float]
    width: float = Field(gt=0)
    length: float = Field(gt=0)
    rotation: float = 0.0


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/api/deceased/ai-search")
async def ai_search(
        q: str | None = None,
        cemetery_id: str | None = None,
        ai: str | None = None,
        app: App = Depends(get_container),
) -> JSONResponse:
    """Natural-language grave search (AI parsing on unless `ai=false`)."""

    if not q or not q.strip():
        return _error("Search query required", 400)

    use_ai = ai != "false"
    started = monotonic()

    try:
        search_intent = None
        source = "keyword"
        if use_ai:
            # The LLM call is a blocking HTTP round trip.
            parse_result = await run_in_threadpool(
                parse_query_with_source, q, llm_config=app.llm_config
            )
            search_intent = parse_result.intent
            source = parse_result.source
            built = build_search_query(search_intent, cemetery_id)
        else:
            built = build_basic_search_query(q, cemetery_id)

        async with get_conn(app.pool) as conn:
            rows = await fetch_all(conn, built.sql, built.params)
    except Exception:
        logger.exception("search failed")
        return _error("Failed to search deceased persons", 500)

    results = [_with_center(row) for row in rows]
    latency_ms = int((monotonic() - started) * 1000)
    logger.info(
        "search source=%s filters=%d results=%d latency_ms=%d",
        source,
        len(search_intent.populated_filters()) if search_intent is not None else 0,
        len(results),
        latency_ms,
    )

    body: dict[str, Any] = {
        "results": results,
        "aiPowered": use_ai,
        "totalResults": len(results),
    }
    if search_intent is not None:
        body["searchIntent"] = search_intent.to_response()
    return JSONResponse(jsonable_encoder(body))


@router.get("/api/deceased/search")
async def keyword_search(
        q: str | None = None,
        cemetery_id: str | None = None,
        app: App = Depends(get_container),
) -> JSONResponse:
    """Plain name search."""

    if not q or not q.strip():
        return _error("Search query required", 400)

    built = build_basic_search_query(q, cemetery_id)
    try:
        async with get_conn(app.pool) as conn:
            rows = await fetch_all(conn, built.sql, built.params)
    except Exception:
        logger.exception("keyword search failed")
        return _error("Failed to search deceased persons", 500)

    return JSONResponse(jsonable_encoder({"results": [_with_center(r) for r in rows]}))


@router.post("/api/plots/template")
async def plot_template(body: TemplateRequest) -> dict[str, Any]:
    """Rectangle corners for a template plot, with edge lengths for the measurement labels."""

    rotation = normalize_angle(body.rotation)
    corners = template_rectangle(body.center, body.width, body.length, rotation)
    return {
        "corners": [list(c) for c in corners],
        "center": list(centroid(corners)),
        "edgeLengths": [round(length, 2) for length in edge_lengths(corners)],
        "rotation": rotation,
    }


@router.post("/api/burials/renew")
async def renew(request: Request, app: App = Depends(get_container)) -> JSONResponse:
    """Extend a burial lease by N years."""

    try:
        renewal = RenewalRequest.model_validate(await request.json())
    except ValidationError as exc:
        return _error(
            "Invalid input",
            400,
            details=exc.errors(include_url=False, include_context=False),
        )
    except ValueError:
        return _error("Invalid input", 400)

    if "years" not in renewal.model_fields_set:
        renewal = renewal.model_copy(update={"years": app.settings.default_lease_years})

    try:
        async with get_conn(app.pool) as conn:
            burial, new_expiration = await renew_burial(conn, renewal, today=_today())
            await write_audit_entry(
                conn,
                AuditEntry(
                    action="burial_renewed",
                    description=f"Renewed for {renewal.years} years until {new_expiration}",
                    resource_type="burial",
                    resource_id=renewal.burial_id,
                    ip_address=client_ip(request.headers),
                    user_agent=request.headers.get("user-agent"),
                ),
            )
    except BurialNotFoundError:
        return _error("Burial not found", 404)
    except Exception:
        logger.exception("burial renewal failed burial_id=%d", renewal.burial_id)
        return _error("Failed to renew burial", 500)

    return JSONResponse(
        jsonable_encoder(
            {
                "burial": burial,
                "message": f"Burial renewed for {renewal.years} years until {new_expiration}",
            }
        )
    )


@router.get("/api/burials/renew")
async def lease_listing(
        cemetery_id: str | None = None,
        expiring: str | None = None,
        app: App = Depends(get_container),
) -> JSONResponse:
    """Burials expiring within 90 days (`expiring` set) or already expired."""

    try:
        async with get_conn(app.pool) as conn:
            if expiring:
                burials = await fetch_expiring(conn, cemetery_id=cemetery_id)
            else:
                burials = await fetch_expired(conn, cemetery_id=cemetery_id)
    except Exception:
        logger.exception("lease listing failed")
        return _error("Failed to fetch expired burials", 500)

    return JSONResponse(jsonable_encoder({"burials": burials}))


async def require_api_key(request: Request, app: App = Depends(get_container)) -> ApiKey:
    """Authenticate an external system and check its permission for this route."""

    try:
        async with get_conn(app.pool) as conn:
            api_key = await verify_api_key(
                conn,
                authorization=request.headers.get("authorization"),
                ip=client_ip(request.headers),
                now=datetime.now(UTC),
            )
    except ApiKeyError as exc:
        raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc

    if not check_permission(api_key, request.method, request.url.path):
        raise HTTPException(status_code=403, detail="Insufficient permissions for this endpoint")
    return api_key


@router.get("/api/external/plots")
async def external_plots(
        cemetery_id: str | None = None,
        section_id: str | None = None,
        available: str | None = None,
        type: str | None = None,  # noqa: A002 (public query parameter name)
        api_key: ApiKey = Depends(require_api_key),
        app: App = Depends(get_container),
) -> JSONResponse:
    """Plots for the external permit system."""

    built = build_external_plots_query(
        cemetery_id=cemetery_id,
        section_id=section_id,
        plot_type=type,
        available_only=available == "true",
    )
    try:
        async with get_conn(app.pool) as conn:
            plots = await fetch_all(conn, built.sql, built.params)
    except Exception:
        logger.exception("external plot listing failed system=%s", api_key.system_name)
        return _error("Failed to fetch plots", 500)

    logger.info("external plots system=%s count=%d", api_key.system_name, len(plots))
    return JSONResponse(jsonable_encoder({"plots": [_with_center(p) for p in plots]}))


@router.get("/api/external/cemeteries")
async def external_cemeteries(
        active: str | None = None,
        api_key: ApiKey = Depends(require_api_key),
        app: App = Depends(get_container),
) -> JSONResponse:
    """Cemeteries with plot availability for the external permit system."""

    try:
        async with get_conn(app.pool) as conn:
            cemeteries = await fetch_external_cemeteries(conn, active_only=active == "true")
    except Exception:
        logger.exception("external cemetery listing failed system=%s", api_key.system_name)
        return _error("Failed to fetch cemeteries", 500)

    return JSONResponse(jsonable_encoder({"cemeteries": cemeteries}))


@router.post("/api/external/permits")
async def external_permit_received(
        request: Request,
        api_key: ApiKey = Depends(require_api_key),
        app: App = Depends(get_container),
) -> JSONResponse:
    """Webhook for permits approved by the external permit system."""

    try:
        permit = PermitSubmission.model_validate(await request.json())
    except ValidationError as exc:
        return _error(
            "Validation failed",
            400,
            details=exc.errors(include_url=False, include_context=False),
        )
    except ValueError:
        return _error("Validation failed", 400)

    try:
        async with get_conn(app.pool) as conn:
            row = await receive_permit(conn, permit)
            await write_audit_entry(
                conn,
                AuditEntry(
                    action="permit_received",
                    description=(
                        f"Received {permit.permit_type} permit {permit.permit_id}"
                        f" for {permit.deceased_name} from {api_key.system_name}"
                    ),
                    resource_type="permit",
                    resource_id=row.get("id"),
                    ip_address=client_ip(request.headers),
                    user_agent=request.headers.get("user-agent"),
                ),
            )
    except PermitExistsError as exc:
        return _error("Permit already exists", 409, permit_id=exc.permit_id, status=exc.status)
    except PreferredPlotNotFoundError:
        return _error("Preferred plot not found", 400)
    except Exception:
        logger.exception("permit intake failed permit_id=%s", permit.permit_id)
        return _error("Failed to process permit", 500)

    body = {
        "message": "Permit received successfully",
        "permit": {
            "id": row.get("id"),
            "permit_id": row.get("permit_id"),
            "status": row.get("status"),
            "created_at": row.get("created_at"),
        },
    }
    return JSONResponse(jsonable_encoder(body), status_code=201)


@router.get("/api/external/permits")
async def external_permit_status(
        permit_id: str | None = None,
        _api_key: ApiKey = Depends(require_api_key),
        app: App = Depends(get_container),
) -> JSONResponse:
    """Status of a previously submitted permit."""

    if not permit_id:
        return _error("permit_id parameter required", 400)

    try:
        async with get_conn(app.pool) as conn:
            row = await get_permit(conn, permit_id)
    except Exception:
        logger.exception("permit lookup failed permit_id=%s", permit_id)
        return _error("Failed to fetch permit", 500)

    if row is None:
        return _error("Permit not found", 404)
    return JSONResponse(jsonable_encoder({"permit": permit_status(row)}))
