"""Image generation, listing, serving and base photo upload endpoints."""

import logging
import mimetypes
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field

from pfp_rotator.exceptions import InvalidArgument

from app.config import settings
from app.dependencies import get_generation_service
from app.services.generation_service import GenerationResult, GenerationService, decode_data_url

logger = logging.getLogger(__name__)

router = APIRouter(tags=["images"])


class Base64GenerateRequest(BaseModel):
    """Body for POST /generate-images-base64."""
    model_config = ConfigDict(populate_by_name=True)

    base_photo: str = Field(alias="basePhoto")
    num_images: int = Field(default=settings.DEFAULT_NUM_IMAGES, alias="numImages")


class FromBaseGenerateRequest(BaseModel):
    """Body for POST /generate-from-base."""
    model_config = ConfigDict(populate_by_name=True)

    num_images: int = Field(default=settings.DEFAULT_NUM_IMAGES, alias="numImages")


def generation_response(result: GenerationResult) -> dict:
    return {
        "success": True,
        "count": result.count,
        "images": [{"filename": name} for name in result.filenames]
    }


async def read_upload(file: UploadFile) -> bytes:
    """
    Read an uploaded image, enforcing the size limit.

    Raises:
        HTTPException 413: File larger than MAX_UPLOAD_BYTES
        InvalidArgument: Empty file or not an image content type
    """
    if file.size is not None and file.size > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Max file size is 10MB")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Max file size is 10MB")
    if not content:
        raise InvalidArgument("No file")
    if file.content_type and not file.content_type.startswith("image/"):
        raise InvalidArgument("Please upload an image file")
    return content


@router.post("/generate-images")
async def generate_images(
    basePhoto: UploadFile = File(...),
    numImages: int = Form(settings.DEFAULT_NUM_IMAGES),
    generation: GenerationService = Depends(get_generation_service)
):
    """
    Generate variations from an uploaded base photo.

    Returns:
        {"success": true, "count": n, "images": [{"filename": ...}]}
    """
    content = await read_upload(basePhoto)
    result = await generation.generate(content, numImages, base_name=basePhoto.filename)
    return generation_response(result)


@router.post("/generate-images-base64")
async def generate_images_base64(
    request: Base64GenerateRequest,
    generation: GenerationService = Depends(get_generation_service)
):
    """Generate variations from a data-URL base photo."""
    if len(request.base_photo) > settings.MAX_BASE64_CHARS:
        raise HTTPException(status_code=413, detail="Max file size is 10MB")
    base = decode_data_url(request.base_photo)
    result = await generation.generate(base, request.num_images)
    return generation_response(result)


@router.post("/generate-from-base")
async def generate_from_base(
    request: Optional[FromBaseGenerateRequest] = None,
    generation: GenerationService = Depends(get_generation_service)
):
    """Generate variations from the base photo in the fixed base folder."""
    num_images = request.num_images if request is not None else settings.DEFAULT_NUM_IMAGES
    result = await generation.generate_from_base(num_images)
    return generation_response(result)


@router.get("/images")
async def list_images(
    request: Request,
    generation: GenerationService = Depends(get_generation_service)
):
    """List stored images."""
    images = generation.list_images()
    base_url = str(request.base_url).rstrip("/")
    return {
        "success": True,
        "count": len(images),
        "images": [
            {
                "filename": img.filename,
                "filepath": str(generation.store.root / img.filename),
                "url": f"{base_url}/images/{img.filename}",
                "label": img.source_prompt,
                "createdAt": img.created_at.isoformat()
            }
            for img in images
        ]
    }


@router.get("/images/{filename}")
async def serve_image(
    filename: str,
    generation: GenerationService = Depends(get_generation_service)
):
    """
    Serve raw image bytes.

    Raises:
        ImageNotFound (404): No stored image with that name
        InvalidArgument (400): Filename with path components
    """
    content = generation.get_image(filename)
    media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    return Response(content=content, media_type=media_type)


@router.delete("/images")
async def clear_images(generation: GenerationService = Depends(get_generation_service)):
    """Delete all stored images."""
    deleted = generation.clear_images()
    return {
        "success": True,
        "message": f"Cleared {deleted} stored images",
        "count": deleted
    }


@router.post("/upload-base")
async def upload_base(
    image: UploadFile = File(...),
    generation: GenerationService = Depends(get_generation_service)
):
    """
    Upload the base photo (replaces the previous one).

    Returns:
        {"ok": true, "filename": "base.jpg"}
    """
    content = await read_upload(image)
    path = await generation.upload_base(content, image.filename)
    return {"ok": True, "filename": path.name}
