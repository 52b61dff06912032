"""Upload limits for assets and images"""

from vfxhub.api.exceptions import InvalidRecordError
from vfxhub.api.schemas.asset import AssetCreate

MAX_ASSET_SIZE = 100 * 1024 * 1024  # 100MB
MAX_IMAGE_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB

ALLOWED_ASSET_TYPES = {
    "image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp",
    "video/mp4", "video/avi", "video/mov", "video/wmv",
    "application/octet-stream",  # 3D model files
    "model/gltf+json", "model/gltf-binary",
}
MODEL_EXTENSIONS = (".obj", ".fbx", ".blend", ".max")


def is_supported_asset(file_name: str, file_type: str) -> bool:
    return file_type in ALLOWED_ASSET_TYPES or file_name.lower().endswith(MODEL_EXTENSIONS)


def validate_asset_upload(asset: AssetCreate) -> AssetCreate:
    if not asset.file_type:
        asset = asset.model_copy(update={"file_type": "application/octet-stream"})

    if asset.file_size > MAX_ASSET_SIZE:
        raise InvalidRecordError(detail=f"File {asset.file_name} is too large (max 100MB)")
    if not is_supported_asset(asset.file_name, asset.file_type):
        raise InvalidRecordError(detail=f"File {asset.file_name} is not a supported format")
    return asset
