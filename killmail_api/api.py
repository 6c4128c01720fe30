"""
API Module

Read-only killmail endpoints, querying directly from the killmails collection.
"""
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Path, Request

from killmail_api.database import KillmailStore
from killmail_api.errors import KillmailAPIError, ParameterDecodeError
from killmail_api.pipeline import BulkQueryPipeline, fetch_killmail
from killmail_api.query import QueryFilter

logger = logging.getLogger(__name__)
router = APIRouter()

INT64_MAX = 2**63 - 1


def get_store(request: Request) -> KillmailStore:
    return request.app.state.store


def get_query_filter(request: Request) -> QueryFilter:
    try:
        return QueryFilter.from_query_params(request.query_params)
    except ParameterDecodeError as e:
        logger.error(f"Rejected bulk query {request.url.query!r}: {e}")
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/kill/{kill_id}")
def get_killmail(
    kill_id: int = Path(..., ge=0, le=INT64_MAX, description="Killmail id"),
    store: KillmailStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    Get a single killmail by id.
    """
    try:
        return fetch_killmail(store, kill_id).to_json()
    except KillmailAPIError as e:
        logger.error(f"Error fetching killmail {kill_id}: {str(e)}")
        raise HTTPException(status_code=e.status_code, detail=str(e))


@router.get("/kills")
def get_killmails(
    query: QueryFilter = Depends(get_query_filter),
    store: KillmailStore = Depends(get_store),
) -> Dict[str, Any]:
    """
    List one page of killmails with derived attributes, newest first,
    keyed by killmail id.
    """
    try:
        killmails = BulkQueryPipeline(store).run(query)
        return {str(kill_id): km.to_json() for kill_id, km in killmails.items()}
    except KillmailAPIError as e:
        logger.error(f"Error listing killmails: {str(e)}")
        raise HTTPException(status_code=e.status_code, detail=str(e))
