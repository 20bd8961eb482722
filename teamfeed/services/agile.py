"""
Agile read path.

`decode_agile_query` turns the loose query parameters of GET /teams/agile
into exactly one request variant, applying the precedence

    team+type=agile → team+type=roles → team+type=plans → roleId → agileId

once, up front. `run_agile_query` dispatches on the variant.

`list_agile_members` answers "who is in agile X" with display-ready profile
data, joining agile_member rows to users application-side.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from teamfeed.joins import JoinResult, collection_join
from teamfeed.models import AgileMember, AgileRole, SprintPlan, TeamAgile, User
from teamfeed.repository import Collection, row_to_dict
from teamfeed.schemas import (
    AgileMemberResponse,
    AgileRoleResponse,
    SprintPlanResponse,
    TeamAgileResponse,
)
from teamfeed.telemetry import ENRICHMENT_DEGRADED_TOTAL

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "email", "avatar_url")


@dataclass(frozen=True)
class TeamAgileQuery:
    team_id: str
    variant = "team_agile"


@dataclass(frozen=True)
class AgileRolesQuery:
    team_id: str
    variant = "roles"


@dataclass(frozen=True)
class SprintPlansQuery:
    team_id: str
    variant = "plans"


@dataclass(frozen=True)
class RoleByIdQuery:
    role_id: str
    variant = "role"


@dataclass(frozen=True)
class AgileMembersQuery:
    agile_id: str
    variant = "members"


AgileQuery = Union[TeamAgileQuery, AgileRolesQuery, SprintPlansQuery, RoleByIdQuery, AgileMembersQuery]

_TEAM_QUERIES = {
    "agile": TeamAgileQuery,
    "roles": AgileRolesQuery,
    "plans": SprintPlansQuery,
}


def decode_agile_query(
    team_id: Optional[str] = None,
    type: Optional[str] = None,
    role_id: Optional[str] = None,
    agile_id: Optional[str] = None,
) -> Optional[AgileQuery]:
    """Return the single query variant these parameters select, or None."""
    if team_id and type in _TEAM_QUERIES:
        return _TEAM_QUERIES[type](team_id=team_id)
    if role_id:
        return RoleByIdQuery(role_id=role_id)
    if agile_id:
        return AgileMembersQuery(agile_id=agile_id)
    return None


async def list_agile_members(db: AsyncSession, agile_id: str) -> list[dict[str, Any]]:
    """
    Members of an agile record ordered by created_at, each enriched with
    name / email / avatar_url from its user profile when that lookup succeeds.

    The profile lookup is best-effort: its failure, or zero matching
    profiles, yields the member rows unmodified. Output length and order
    always equal the member rows'.
    """
    members = Collection(db, AgileMember)
    users = Collection(db, User)

    async def fetch_members() -> list[dict]:
        rows = await members.list(order_by="created_at", agile_id=agile_id)
        return [row_to_dict(r) for r in rows]

    async def fetch_profiles(user_ids: list) -> list[dict]:
        rows = await users.in_(user_ids)
        return [row_to_dict(r) for r in rows]

    result: JoinResult = await collection_join(
        fetch_members,
        fetch_profiles,
        foreign_key="user_id",
        fields=PROFILE_FIELDS,
        label=f"agile {agile_id} members",
    )
    if result.degraded:
        ENRICHMENT_DEGRADED_TOTAL.labels(reason=result.degraded).inc()

    logger.info("Agile %s: %d members (enrichment=%s)", agile_id, len(result.rows), result.degraded or "ok")
    # exclude_unset keeps un-enriched rows free of profile keys
    return [
        AgileMemberResponse(**row).model_dump(mode="json", exclude_unset=True)
        for row in result.rows
    ]


async def run_agile_query(db: AsyncSession, query: AgileQuery) -> Any:
    """Execute one decoded query; returns JSON-ready data (list, dict or None)."""
    if isinstance(query, TeamAgileQuery):
        rows = await Collection(db, TeamAgile).list(
            order_by="created_at", descending=True, team_id=query.team_id
        )
        logger.info("Team %s: %d agile records", query.team_id, len(rows))
        return [TeamAgileResponse.model_validate(r).model_dump(mode="json") for r in rows]

    if isinstance(query, AgileRolesQuery):
        rows = await Collection(db, AgileRole).list(order_by="created_at", team_id=query.team_id)
        logger.info("Team %s: %d agile roles", query.team_id, len(rows))
        return [AgileRoleResponse.model_validate(r).model_dump(mode="json") for r in rows]

    if isinstance(query, SprintPlansQuery):
        rows = await Collection(db, SprintPlan).list(order_by="created_at", team_id=query.team_id)
        logger.info("Team %s: %d sprint plans", query.team_id, len(rows))
        return [SprintPlanResponse.model_validate(r).model_dump(mode="json") for r in rows]

    if isinstance(query, RoleByIdQuery):
        role = await Collection(db, AgileRole).get(query.role_id)
        logger.info("Role %s: %s", query.role_id, "found" if role else "not found")
        return AgileRoleResponse.model_validate(role).model_dump(mode="json") if role else None

    if isinstance(query, AgileMembersQuery):
        return await list_agile_members(db, query.agile_id)

    raise TypeError(f"Unsupported agile query: {query!r}")
