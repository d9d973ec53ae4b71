"""Pass-through routes to the Express backend for property CRUD and images."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from nester_engine.common.handlers import guarded

router = APIRouter(prefix="/api/properties", tags=["properties"])


def _get_backend():
    from nester_engine.deps import get_backend_client
    return get_backend_client()


async def _forward(request: Request, path: str) -> JSONResponse:
    async with guarded(f"Backend {request.method} {path}"):
        status, body = await _get_backend().forward(
            request.method,
            path,
            headers=dict(request.headers),
            params=list(request.query_params.multi_items()),
            content=await request.body(),
        )
        return JSONResponse(content=body, status_code=status)


@router.api_route("", methods=["GET", "POST", "PUT", "DELETE"])
async def properties(request: Request):
    return await _forward(request, "/api/properties")


@router.api_route("/{property_id}/images", methods=["GET", "POST"])
async def property_images(property_id: str, request: Request):
    return await _forward(request, f"/api/properties/{property_id}/images")


@router.delete("/{property_id}/images/{image_id}")
async def delete_property_image(property_id: str, image_id: str, request: Request):
    return await _forward(request, f"/api/properties/{property_id}/images/{image_id}")
