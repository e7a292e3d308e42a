from fastapi import APIRouter, Depends, Request

from apps.presign.schemas import GetObjectResponse, PutObjectResponse
from apps.presign.service import PresignService
from common.responses import JSONUTF8Response


router = APIRouter(prefix="/v1", tags=["Presign"])


def get_presign_service(request: Request) -> PresignService:
    """
    Dependency returning the service bound to the app's signer registry.
    """
    return request.app.state.presign_service


def _render(resp) -> JSONUTF8Response:
    return JSONUTF8Response(content=resp.model_dump(mode="json", exclude_none=True))


@router.post("/put", response_model=PutObjectResponse)
@router.post("/presign/put", response_model=PutObjectResponse, include_in_schema=False)
async def presign_put(
    request: Request,
    service: PresignService = Depends(get_presign_service),
):
    """
    Generate presigned PUT URLs for every replication target in the body.
    The body is decoded by the service so malformed JSON maps to a 400.
    """
    resp = await service.presign_put(await request.body())
    return _render(resp)


@router.post("/get", response_model=GetObjectResponse)
async def presign_get(
    request: Request,
    service: PresignService = Depends(get_presign_service),
):
    """
    Generate presigned GET URLs for read access to existing objects.
    """
    resp = await service.presign_get(await request.body())
    return _render(resp)
