"""
Query Module

This module turns ``/kills`` query string parameters into a validated
``QueryFilter`` and builds the MongoDB filter document for it.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from killmail_api import config
from killmail_api.errors import ParameterDecodeError

logger = logging.getLogger(__name__)

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

# Filter parameter -> field name under both killmail.attackers and killmail.victim.
# Order matters for the legacy combination, where the last one set wins.
ENTITY_FIELDS = {
    "character_id": "character_id",
    "corporation_id": "corporation_id",
    "alliance_id": "alliance_id",
}


def _entity_id():
    return Field(default=None, ge=INT32_MIN, le=INT32_MAX)


class QueryFilter(BaseModel):
    """
    Filters accepted by the bulk killmail endpoint.

    Every filter is optional; ``None`` means "no constraint". ``page`` is
    zero-based and values below zero behave as page 0.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Entity filters
    character_id: Optional[int] = _entity_id()
    corporation_id: Optional[int] = _entity_id()
    alliance_id: Optional[int] = _entity_id()

    # Location filters
    solar_system: Optional[int] = _entity_id()
    constellation: Optional[int] = _entity_id()
    region: Optional[int] = _entity_id()

    # Pagination occurs on all requests
    # Bounded so the skip still fits a signed 64-bit value
    page: int = Field(default=0, ge=INT64_MIN, le=INT64_MAX // config.PAGE_SIZE)

    @classmethod
    def from_query_params(cls, params: Mapping[str, str]) -> "QueryFilter":
        """
        Decode raw query string parameters.

        Args:
            params: Query parameters, e.g. ``request.query_params``

        Returns:
            QueryFilter instance

        Raises:
            ParameterDecodeError: on unknown parameters or malformed values
        """
        values = {key: value for key, value in params.items() if value != ""}
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in e.errors()
            )
            raise ParameterDecodeError(f"invalid query parameters: {problems}") from e

    @property
    def skip(self) -> int:
        return max(self.page, 0) * config.PAGE_SIZE

    @property
    def limit(self) -> int:
        return config.PAGE_SIZE


def _entity_clause(field: str, value: int) -> Dict[str, Any]:
    return {
        "$or": [
            {f"killmail.attackers.{field}": value},
            {f"killmail.victim.{field}": value},
        ]
    }


def build_filter(query: QueryFilter, legacy: bool = False) -> Dict[str, Any]:
    """
    Build the MongoDB filter document for a bulk query.

    Only killmails with derived attributes (``axiom``) are eligible. Each
    entity filter matches either any attacker or the victim. Entity filters
    are combined with ``$and``; with ``legacy`` set they overwrite each other
    and only the last one supplied applies.

    Any supplied identifier is a real constraint, including 0 and negative
    values; only an omitted or empty parameter leaves a filter unset.

    Args:
        query: Validated query filter
        legacy: Reproduce the old last-filter-wins combination

    Returns:
        Filter document for ``Collection.find``
    """
    filter_doc: Dict[str, Any] = {"axiom": {"$exists": True}}

    clauses: List[Dict[str, Any]] = []
    for param, field in ENTITY_FIELDS.items():
        value = getattr(query, param)
        if value is None:
            continue
        clauses.append(_entity_clause(field, value))

    if legacy and clauses:
        filter_doc.update(clauses[-1])
    elif len(clauses) == 1:
        filter_doc.update(clauses[0])
    elif clauses:
        filter_doc["$and"] = clauses

    if query.solar_system is not None:
        filter_doc["killmail.solar_system_id"] = query.solar_system

    if query.constellation is not None or query.region is not None:
        # Documents carry no constellation/region data to match against
        logger.debug("Ignoring constellation/region filters")

    return filter_doc
