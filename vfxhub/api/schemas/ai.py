from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field


class GenerationType(str, Enum):
    CHAT = "chat"
    COMPLETION = "completion"
    ANALYSIS = "analysis"
    GENERATION = "generation"


class TextGenerationRequest(BaseModel):
    """Validated text generation request (camelCase keys accepted from clients)"""

    prompt: str
    type: GenerationType = GenerationType.CHAT
    model: Any = "gpt-3.5-turbo"
    max_tokens: Union[int, float] = Field(1000, alias="maxTokens")
    temperature: float = 0.7

    class Config:
        populate_by_name = True


class TextGenerationData(BaseModel):
    content: str = Field(..., example="Here is a breakdown of the shot...")
    type: GenerationType
    model: Any = Field(..., example="gpt-3.5-turbo")
    usage: Optional[Dict[str, Any]] = None
    timestamp: datetime


class TextGenerationResponse(BaseModel):
    success: bool = True
    data: TextGenerationData


class ImageGenerationRequest(BaseModel):
    prompt: str
    width: Any = 1024
    height: Any = 1024


class ImageGenerationData(BaseModel):
    result: Optional[Dict[str, Any]] = None
    image: str = Field(..., example="data:image/png;base64,iVBORw0KGgo...")
    prompt: str
    width: Any
    height: Any
    timestamp: datetime


class ImageGenerationResponse(BaseModel):
    success: bool = True
    data: ImageGenerationData


class StreamFileRequest(BaseModel):
    url: str = Field(..., example="https://cdn.example.com/plates/shot_010.png")
    mime_type: str = Field("application/octet-stream", alias="mimeType", example="image/png")

    class Config:
        populate_by_name = True


class StreamFileData(BaseModel):
    data_url: str = Field(..., serialization_alias="dataUrl")
    mime_type: str = Field(..., serialization_alias="mimeType")
    size: int
    timestamp: datetime


class StreamFileResponse(BaseModel):
    success: bool = True
    data: StreamFileData


class ImageUploadData(BaseModel):
    result: Optional[Dict[str, Any]] = None
    file_name: str = Field(..., serialization_alias="fileName")
    size: int
    timestamp: datetime


class ImageUploadResponse(BaseModel):
    success: bool = True
    data: ImageUploadData


class ErrorEnvelope(BaseModel):
    success: bool = False
    error: str
    details: Optional[str] = None
    status_code: Optional[int] = Field(None, serialization_alias="statusCode")
