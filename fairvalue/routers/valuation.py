import json
from dataclasses import asdict
from functools import lru_cache

from fastapi import APIRouter, Depends, Header, Response
from starlette.status import HTTP_304_NOT_MODIFIED

from ..schemas import FairValueRequest, FairValueResponse, ValuationRequest, ValuationResponse
from ..services.fair_value import assess_fair_value
from ..services.valuation_service import ValuationService, build_valuation_service
from ..core.config import settings
from ..core.security import require_api_key, rate_limit
from ..core.utils import weak_etag

router = APIRouter()

@lru_cache(maxsize=1)
def service_dep() -> ValuationService:
    # Clients are built once and shared; they hold no per-request state.
    return build_valuation_service()

@router.post("/valuation", response_model=ValuationResponse)
async def post_valuation(
    body: ValuationRequest,
    response: Response,
    if_none_match: str | None = Header(default=None, alias="if-none-match"),
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    svc: ValuationService = Depends(service_dep),
):
    # InsufficientDataError is mapped to 422 by the app-level handler
    result = await svc.get_valuation(body.to_input())

    payload = asdict(result)
    payload["currency"] = settings.DEFAULT_CURRENCY
    etag = weak_etag(json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str).encode("utf-8"))
    if if_none_match and if_none_match == etag:
        return Response(status_code=HTTP_304_NOT_MODIFIED, headers={"ETag": etag})
    payload["etag"] = etag
    response.headers["ETag"] = etag
    return payload

@router.post("/fair-value", response_model=FairValueResponse)
async def post_fair_value(
    body: FairValueRequest,
    _auth = Depends(require_api_key),
    _lim  = Depends(rate_limit),
    svc: ValuationService = Depends(service_dep),
):
    assessment = await assess_fair_value(svc.catalog, body.to_input(), body.asking_price)
    return asdict(assessment)
