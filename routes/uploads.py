from fastapi import APIRouter, UploadFile, File

from config import MAX_UPLOAD_MB
from dependencies import S3

router = APIRouter()


@router.post("/upload")
async def upload_image(s3_service: S3, image: UploadFile = File(...)):
    """Store an uploaded or captured image and return its public URL"""
    url = await s3_service.upload_image(image, max_size_mb=MAX_UPLOAD_MB)
    return {
        "message": "File uploaded successfully",
        "url": url,
    }
