import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse, Response

from app.application.use_cases.image_resize import ResizeImageUseCase
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.pyd_schemas import ResizeQueryParams
from app.presentation.api.v1.dependencies.images import get_resize_use_case
from app.presentation.api.v1.schemas.images import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/images")

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def _check_dimension_limits(params: ResizeQueryParams) -> None:
    errors = []
    if params.width is not None and params.width > settings.max_image_width:
        errors.append(f"width must be <= {settings.max_image_width}")
    if params.height is not None and params.height > settings.max_image_height:
        errors.append(f"height must be <= {settings.max_image_height}")
    if errors:
        raise ValidationError("; ".join(errors), validation_errors=errors)


@router.get(
    "/resize",
    status_code=301,
    response_class=RedirectResponse,
    responses=ERROR_RESPONSES,
)
async def resize_image(
    params: Annotated[ResizeQueryParams, Query()],
    use_case: ResizeImageUseCase = Depends(get_resize_use_case),
):
    """Resize an image and redirect to the cached artifact."""
    _check_dimension_limits(params)
    url = await use_case.resize(params.to_request())
    return RedirectResponse(url=url, status_code=301)


@router.get(
    "/files/{key:path}",
    response_class=Response,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def download_image(
    key: str,
    use_case: ResizeImageUseCase = Depends(get_resize_use_case),
):
    """Serve previously cached image bytes."""
    artifact = await use_case.retrieve(key)
    return Response(
        content=artifact.data,
        media_type=artifact.content_type,
        headers={"Cache-Control": settings.files_cache_control},
    )
