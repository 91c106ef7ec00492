"""Public query endpoints: browse, detail, search, type filter, combined, types.

All endpoints are public (no auth) and rate limited per client IP.
Responses keep the field names the browsing UI renders (pokemon, count,
hasMore, ...).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import Response

from pokedex.etl.base import ItemDetail, ItemSummary, NotFound, QueryResult, UpstreamError
from pokedex.query.service import QueryService
from pokedex.security import PUBLIC_RATE_LIMIT, limiter
from pokedex.telemetry import get_metrics_text
from pokedex.telemetry.sentry import is_sentry_enabled

router = APIRouter(tags=["pokemon"])

logger = logging.getLogger(__name__)


def get_query_service(request: Request) -> QueryService:
    """Dependency: the QueryService built in the app lifespan."""
    return request.app.state.query_service


def _summary_to_dict(item: ItemSummary) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "sprite": item.sprite_url,
        "types": list(item.categories),
    }


def _detail_to_dict(detail: ItemDetail) -> dict:
    return {
        "id": detail.id,
        "name": detail.name,
        "height": detail.height,
        "weight": detail.weight,
        "baseExperience": detail.base_experience,
        "sprite": detail.sprite_url,
        "types": list(detail.categories),
        "abilities": [{"name": a.name, "isHidden": a.is_hidden} for a in detail.abilities],
        "stats": [{"name": s.name, "baseStat": s.base_stat} for s in detail.stats],
        "statTotal": detail.stat_total,
    }


def _query_result_to_dict(result: QueryResult) -> dict:
    return {
        "pokemon": [_summary_to_dict(i) for i in result.results],
        "count": result.count,
        "hasMore": result.has_more,
        "isEmpty": len(result.results) == 0,
    }


def _to_http_error(e: UpstreamError, what: str) -> HTTPException:
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail=f"{what} not found")
    logger.error(f"[API] Upstream failure for {what}: {e}")
    return HTTPException(status_code=502, detail=f"Failed to fetch {what}")


@router.get("/pokemon")
@limiter.limit(PUBLIC_RATE_LIMIT)
async def list_pokemon(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    service: QueryService = Depends(get_query_service),
):
    """One browse page with hydrated summaries."""
    try:
        page = await service.fetch_page(limit, offset)
    except UpstreamError as e:
        raise _to_http_error(e, "Pokémon list")

    return {
        "pokemon": [_summary_to_dict(i) for i in page.items],
        "count": page.total,
        "hasNext": page.has_next,
        "hasPrevious": page.has_previous,
        "nextOffset": page.next_offset,
        "previousOffset": page.previous_offset,
    }


@router.get("/pokemon/search")
@limiter.limit(PUBLIC_RATE_LIMIT)
async def search_pokemon(
    request: Request,
    query: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=50),
    service: QueryService = Depends(get_query_service),
):
    try:
        result = await service.search(query, limit)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UpstreamError as e:
        raise _to_http_error(e, "Pokémon search")

    return {**_query_result_to_dict(result), "query": query}


@router.get("/pokemon/filter")
@limiter.limit(PUBLIC_RATE_LIMIT)
async def filter_pokemon_by_type(
    request: Request,
    type: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=50),
    service: QueryService = Depends(get_query_service),
):
    try:
        result = await service.filter_by_category(type, limit)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UpstreamError as e:
        raise _to_http_error(e, f"type '{type}'")

    return {**_query_result_to_dict(result), "type": type}


@router.get("/pokemon/search-filter")
@limiter.limit(PUBLIC_RATE_LIMIT)
async def search_and_filter_pokemon(
    request: Request,
    query: str = Query(..., min_length=1),
    type: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=50),
    service: QueryService = Depends(get_query_service),
):
    try:
        result = await service.search_and_filter(query, type, limit)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UpstreamError as e:
        raise _to_http_error(e, f"type '{type}'" if type else "Pokémon search")

    return {**_query_result_to_dict(result), "query": query, "type": type}


@router.get("/pokemon/types")
@limiter.limit(PUBLIC_RATE_LIMIT)
async def list_types(
    request: Request,
    service: QueryService = Depends(get_query_service),
):
    try:
        names = await service.list_categories()
    except UpstreamError as e:
        raise _to_http_error(e, "types")
    return {"types": [{"name": n} for n in names]}


@router.get("/pokemon/{name_or_id}")
@limiter.limit(PUBLIC_RATE_LIMIT)
async def get_pokemon(
    request: Request,
    name_or_id: str,
    service: QueryService = Depends(get_query_service),
):
    try:
        detail = await service.fetch_detail(name_or_id)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except UpstreamError as e:
        raise _to_http_error(e, f"Pokémon {name_or_id}")
    return _detail_to_dict(detail)


@router.get("/metrics")
async def metrics():
    """Prometheus scrape endpoint."""
    content, content_type = get_metrics_text()
    return Response(content=content, media_type=content_type)


@router.get("/health")
async def health(service: QueryService = Depends(get_query_service)):
    return {
        "status": "ok",
        "cache": service.cache_stats(),
        "sentry": is_sentry_enabled(),
    }
