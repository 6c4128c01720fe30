"""
Query Pipeline Module

This module runs killmail lookups against the store: single fetch by id and
the filtered, paginated bulk listing.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from pydantic import ValidationError

from killmail_api import config
from killmail_api.database import KillmailStore
from killmail_api.errors import StoreOperationError
from killmail_api.models import KillmailData
from killmail_api.query import QueryFilter, build_filter

logger = logging.getLogger(__name__)


def _decode(document) -> KillmailData:
    try:
        return KillmailData.model_validate(document)
    except ValidationError as e:
        raise StoreOperationError(
            f"failed to decode killmail {document.get('_id')!r}: {e}"
        ) from e


def fetch_killmail(store: KillmailStore, kill_id: int) -> KillmailData:
    """Fetch and decode a single killmail."""
    logger.info(f"Fetching killmail - {kill_id}")
    return _decode(store.find_one(kill_id))


class BulkQueryPipeline:
    """
    Builds the bulk query, executes it and assembles the response set.
    """

    def __init__(self, store: KillmailStore, legacy_filters: Optional[bool] = None):
        self.store = store
        self.legacy_filters = (
            config.LEGACY_FILTER_COMBINATION
            if legacy_filters is None
            else legacy_filters
        )

    def run(self, query: QueryFilter) -> Dict[int, KillmailData]:
        """
        Run one page of the bulk query.

        Args:
            query: Validated query filter

        Returns:
            Killmails keyed by id, newest first

        Raises:
            StoreOperationError: on store failure or if any document fails
                to decode; no partial result is returned
        """
        start_time = datetime.now(timezone.utc)
        filter_doc = build_filter(query, legacy=self.legacy_filters)
        logger.info(f"Bulk query {query.model_dump(exclude_none=True)} -> {filter_doc}")

        killmails: Dict[int, KillmailData] = {}
        with self.store.find_page(filter_doc, query.skip, query.limit) as cursor:
            for document in cursor:
                km = _decode(document)
                killmails[km.id] = km

        duration = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.info(
            f"Bulk query returned {len(killmails)} killmails in {duration:.2f} seconds"
        )
        return killmails
