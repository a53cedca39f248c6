import logging
import re
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from typesense_service.api.dependencies import get_manager
from typesense_service.manager import TypesenseServiceManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["typesense"])

_COLLECTION_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def _check_collection(name: str) -> str:
    if not _COLLECTION_RE.match(name):
        raise HTTPException(status_code=400, detail=f"Collection invalide: {name}")
    return name


@router.get("/collections/{collection}/search")
async def proxy_search(
    collection: str,
    request: Request,
    manager: TypesenseServiceManager = Depends(get_manager),
):
    """
    Proxy de recherche côté serveur

    Relaie tous les paramètres de query-string vers Typesense avec la clé API,
    pour que le navigateur ne la voie jamais. Le corps et le statut amont sont
    renvoyés tels quels.
    """
    _check_collection(collection)
    client = manager.main_service

    try:
        response = await client.client.get(
            client.search_path(collection),
            params=list(request.query_params.multi_items()),
        )
        data = response.json()
        return JSONResponse(content=data, status_code=response.status_code)
    except Exception as e:
        logger.error(f"Typesense proxy error on {collection}: {e}")
        return JSONResponse(content={"error": "Proxy failed"}, status_code=500)


@router.get("/indexes/{index_name}/ids")
async def search_ids(
    index_name: str,
    q: str = "",
    page: int = Query(0, ge=0),
    hits_per_page: int = Query(20, ge=1, le=250),
    sort: str = "date",
    filter_by: Optional[str] = None,
    facet: Optional[List[str]] = Query(None),
    numeric: Optional[List[str]] = Query(None),
    manager: TypesenseServiceManager = Depends(get_manager),
):
    """
    Recherche paginée à facettes

    Chaque paramètre `facet` est un groupe OU dont les valeurs sont séparées
    par `|` (ex. `facet=color:red|color:blue&facet=brand:acme`).
    """
    _check_collection(index_name)
    facet_filters = [
        [value for value in group.split("|") if value.strip()] for group in facet or []
    ]

    page_result = await manager.main_service.search_ids_with_facets(
        index_name,
        query=q,
        page=page,
        hits_per_page=hits_per_page,
        facet_filters=facet_filters,
        numeric_filters=numeric or [],
        sort_option=sort,
        additional_filter_by=filter_by,
    )
    return page_result.model_dump(by_alias=True, exclude_none=True)


@router.get("/health")
async def health(manager: TypesenseServiceManager = Depends(get_manager)):
    """État de santé des quatre collections principales"""
    healthy = await manager.is_healthy()
    return JSONResponse(
        content={
            "status": "healthy" if healthy else "unhealthy",
            "initialized": manager.is_initialized,
            "metrics": manager.get_metrics(),
        },
        status_code=200 if healthy else 503,
    )
