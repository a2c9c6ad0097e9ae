"""Async Supabase-backed EventStore.

Reads events, tag relations, RSVPs and co-hosts through the supabase Python
client (PostgREST underneath, httpx for transport). Transient transport
failures are retried; anything else is surfaced as StoreError.
"""
from __future__ import annotations

import os
from typing import Any, Dict, Iterable, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from eventfeed.services.event_store import StoreError
from eventfeed.services.predicate import Predicate
from eventfeed.utils.logger import logger

EVENT_SELECT = """
    *,
    profiles:profiles!events_created_by_fkey(username, id),
    locations:location_id (name, building, floor),
    event_tags:event_tag_relations (
        tags:event_tags (id, name)
    )
"""

RSVP_SELECT = "event_id, profile_id, profiles(id, username, avatar_url)"


def _ts(value) -> str:
    return value.isoformat()


def apply_predicate(query, predicate: Predicate):
    """Translate a Predicate into PostgREST filters on a query builder."""
    if predicate.event_ids is not None:
        query = query.in_("id", sorted(predicate.event_ids))
    if predicate.hosted_by is not None:
        if predicate.cohosted_ids:
            ids = ",".join(sorted(predicate.cohosted_ids))
            query = query.or_(f"created_by.eq.{predicate.hosted_by},id.in.({ids})")
        else:
            query = query.eq("created_by", predicate.hosted_by)
    if predicate.overlaps is not None:
        day_start, day_end = predicate.overlaps
        query = query.lte("start_date", _ts(day_end)).gte("end_date", _ts(day_start))
    if predicate.start_between is not None:
        low, high = predicate.start_between
        query = query.gte("start_date", _ts(low)).lte("start_date", _ts(high))
    if predicate.start_after is not None:
        query = query.gt("start_date", _ts(predicate.start_after))
    if predicate.end_before is not None:
        query = query.lt("end_date", _ts(predicate.end_before))
    if predicate.created_since is not None:
        query = query.gte("created_at", _ts(predicate.created_since))
    return query


class SupabaseEventStore:
    """EventStore over the Supabase tables used by the community app."""

    def __init__(self, client: Optional[AsyncClient] = None) -> None:
        self._client = client

    async def _get_client(self) -> AsyncClient:
        if self._client is None:
            url = os.getenv("SUPABASE_URL")
            key = os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_SERVICE_ROLE_KEY")
            if not url or not key:
                raise RuntimeError("Supabase env vars are not configured")
            self._client = await acreate_client(url, key)
        return self._client

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _send(self, query):
        return await query.execute()

    async def _execute(self, table: str, query):
        try:
            return await self._send(query)
        except APIError as exc:
            logger.error("Supabase query failed", extra={"table": table, "error": exc.message})
            raise StoreError(exc.message or str(exc), table=table) from exc
        except httpx.HTTPError as exc:
            logger.error("Supabase request failed", extra={"table": table, "error": str(exc)})
            raise StoreError(str(exc), table=table) from exc

    async def list_events(self, predicate: Predicate, offset: int, limit: int) -> List[Dict[str, Any]]:
        client = await self._get_client()
        query = apply_predicate(client.table("events").select(EVENT_SELECT), predicate)
        query = query.order("start_date", desc=predicate.descending).range(offset, offset + limit - 1)
        resp = await self._execute("events", query)
        data = resp.data or []
        logger.debug("Fetched events", extra={"tab": predicate.tab.value, "offset": offset, "count": len(data)})
        return data

    async def count_events(self, predicate: Predicate) -> int:
        client = await self._get_client()
        query = apply_predicate(client.table("events").select("id", count="exact", head=True), predicate)
        resp = await self._execute("events", query)
        return resp.count or 0

    async def list_event_ids_by_any_tag(self, tag_ids: Iterable[str]) -> List[str]:
        client = await self._get_client()
        query = client.table("event_tag_relations").select("event_id").in_("tag_id", list(tag_ids))
        resp = await self._execute("event_tag_relations", query)
        return [row["event_id"] for row in resp.data or []]

    async def list_event_ids_rsvped_by(self, profile_id: str) -> List[str]:
        client = await self._get_client()
        query = client.table("event_rsvps").select("event_id").eq("profile_id", profile_id)
        resp = await self._execute("event_rsvps", query)
        return [row["event_id"] for row in resp.data or []]

    async def list_event_ids_cohosted_by(self, profile_id: str) -> List[str]:
        client = await self._get_client()
        query = client.table("event_co_hosts").select("event_id").eq("profile_id", profile_id)
        resp = await self._execute("event_co_hosts", query)
        return [row["event_id"] for row in resp.data or []]

    async def list_rsvps_for_events(self, event_ids: Iterable[str]) -> List[Dict[str, Any]]:
        client = await self._get_client()
        query = client.table("event_rsvps").select(RSVP_SELECT).in_("event_id", list(event_ids))
        resp = await self._execute("event_rsvps", query)
        return resp.data or []
