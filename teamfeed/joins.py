"""
Application-side join for stores without native joins.

  fetch primary rows
    → project the foreign keys they reference (falsy ids dropped)
    → batch-fetch the secondary rows in one IN query
    → merge by key, passing primary rows through untouched on a miss

The primary rows are the guarantee; the secondary lookup is best-effort.
A failing or empty secondary fetch degrades to the primary rows as-is.
Primary fetch errors propagate to the caller.
"""
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

logger = logging.getLogger(__name__)

Row = dict[str, Any]

# Reasons a join returned un-enriched rows
DEGRADED_NO_KEYS = "no_keys"
DEGRADED_FETCH_FAILED = "fetch_failed"
DEGRADED_NO_MATCHES = "no_matches"


@dataclass
class JoinResult:
    rows: list[Row]
    degraded: Optional[str] = None   # one of the DEGRADED_* reasons, None when enriched


def project_keys(rows: Sequence[Row], foreign_key: str) -> list[Any]:
    """Distinct truthy values of `foreign_key`, in first-seen order."""
    return list(dict.fromkeys(r.get(foreign_key) for r in rows if r.get(foreign_key)))


def merge_by_key(
    primary: Sequence[Row],
    secondary: Sequence[Row],
    foreign_key: str,
    fields: Sequence[str],
    secondary_key: str = "id",
) -> list[Row]:
    """
    Copy `fields` from the matching secondary row into a new dict per primary row.
    Rows without a match are passed through as the same object. Length and
    order of `primary` are preserved.
    """
    index = {s.get(secondary_key): s for s in secondary}
    merged: list[Row] = []
    for row in primary:
        match = index.get(row.get(foreign_key))
        if match is None:
            merged.append(row)
            continue
        enriched = dict(row)
        for field in fields:
            enriched[field] = match.get(field)
        merged.append(enriched)
    return merged


async def collection_join(
    fetch_primary: Callable[[], Awaitable[Sequence[Row]]],
    fetch_secondary: Callable[[list[Any]], Awaitable[Sequence[Row]]],
    *,
    foreign_key: str,
    fields: Sequence[str],
    secondary_key: str = "id",
    label: str = "join",
) -> JoinResult:
    primary = list(await fetch_primary())
    if not primary:
        logger.debug("%s: no primary rows", label)
        return JoinResult(rows=[])

    keys = project_keys(primary, foreign_key)
    if not keys:
        logger.info("%s: %d rows reference no %s", label, len(primary), foreign_key)
        return JoinResult(rows=primary, degraded=DEGRADED_NO_KEYS)

    try:
        secondary = list(await fetch_secondary(keys))
    except Exception as exc:
        logger.warning(
            "%s: secondary fetch for %d keys failed (%s) — returning un-enriched rows",
            label, len(keys), exc,
        )
        return JoinResult(rows=primary, degraded=DEGRADED_FETCH_FAILED)

    if not secondary:
        logger.info("%s: no secondary rows matched %d keys", label, len(keys))
        return JoinResult(rows=primary, degraded=DEGRADED_NO_MATCHES)

    logger.debug("%s: merging %d primary with %d secondary rows", label, len(primary), len(secondary))
    return JoinResult(
        rows=merge_by_key(primary, secondary, foreign_key, fields, secondary_key),
    )
