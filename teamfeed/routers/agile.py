"""
Agile read endpoint:
  GET /teams/agile?teamId=&type=agile   — team agile records (newest first)
  GET /teams/agile?teamId=&type=roles   — agile roles
  GET /teams/agile?teamId=&type=plans   — sprint plans
  GET /teams/agile?roleId=              — one role object, or null
  GET /teams/agile?agileId=             — agile members enriched with profiles

Unrecognised parameter combinations → 400.
Unhandled errors → 500 carrying the error message; a failing member lookup
answers 500 with an empty list so a consuming view can render an empty state.
"""
import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from teamfeed.database import get_db
from teamfeed.services.agile import AgileMembersQuery, decode_agile_query, run_agile_query
from teamfeed.telemetry import AGILE_QUERY_LATENCY

logger = logging.getLogger(__name__)
router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.get("/agile")
async def get_agile(
    team_id: Optional[str] = Query(None, alias="teamId"),
    type: Optional[str] = Query(None),
    role_id: Optional[str] = Query(None, alias="roleId"),
    agile_id: Optional[str] = Query(None, alias="agileId"),
    db: AsyncSession = Depends(get_db),
):
    start_time = time.time()
    logger.debug(
        "Agile query params teamId=%s type=%s roleId=%s agileId=%s",
        team_id, type, role_id, agile_id,
    )

    query = decode_agile_query(team_id=team_id, type=type, role_id=role_id, agile_id=agile_id)
    if query is None:
        logger.error("Invalid agile query parameters")
        return JSONResponse({"error": "Invalid request parameters"}, status_code=400)

    with tracer.start_as_current_span("get_agile") as span:
        span.set_attribute("agile.variant", query.variant)
        try:
            data = await run_agile_query(db, query)
        except Exception as exc:
            if isinstance(query, AgileMembersQuery):
                logger.exception("Agile %s member lookup failed", query.agile_id)
                return JSONResponse([], status_code=500)
            logger.exception("Agile query %s failed", query.variant)
            return JSONResponse({"error": str(exc)}, status_code=500)
        finally:
            AGILE_QUERY_LATENCY.labels(variant=query.variant).observe(time.time() - start_time)

    return JSONResponse(data)
