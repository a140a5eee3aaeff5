"""Pydantic schemas for API requests and responses."""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


# =============================================================================
# Video Schemas
# =============================================================================

class VideoCreate(BaseModel):
    """Request to process a video from a URL."""
    url: str = Field(..., min_length=1, description="Source video URL")


class VideoResponse(BaseModel):
    """Video response."""
    id: str
    url: str
    title: Optional[str]
    duration: Optional[int]
    file_path: Optional[str]
    thumbnail_url: Optional[str]
    status: str
    error_message: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TranscriptSegmentResponse(BaseModel):
    """A timed piece of transcript text."""
    start: float
    end: float
    text: str


class TranscriptResponse(BaseModel):
    """Transcript response."""
    id: str
    video_id: str
    language: Optional[str]
    segments: List[TranscriptSegmentResponse]
    full_text: Optional[str]
    created_at: datetime


class SuggestedClipResponse(BaseModel):
    """Suggested clip response."""
    id: str
    video_id: str
    start_time: float
    end_time: float
    title: Optional[str]
    description: Optional[str]
    score: Optional[float]
    reason: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


# =============================================================================
# Clip Schemas
# =============================================================================

class SubtitleCueSchema(BaseModel):
    """A styled subtitle cue, in seconds relative to the clip start."""
    text: str
    start_time: float
    end_time: float
    font_family: str = ""
    font_size: int = 0
    font_weight: int = 0
    color: str = ""
    bg_color: str = ""
    bg_opacity: float = 0.0
    position: str = Field("bottom", description="top, center or bottom")
    bold: bool = False
    italic: bool = False
    border_radius: int = 0
    shadow_blur: int = 0
    transition: str = ""
    active_text_color: str = ""


class ClipExportRequest(BaseModel):
    """Request to render a clip with burned-in subtitles."""
    title: Optional[str] = None
    start_time: float = Field(..., description="Start time in seconds")
    end_time: float = Field(..., description="End time in seconds")
    subtitles: List[SubtitleCueSchema] = Field(default_factory=list)


class ClipExportResponse(BaseModel):
    """Result of a clip render."""
    id: str
    download_url: str
    status: str


class ClipResponse(BaseModel):
    """Clip response."""
    id: str
    video_id: str
    title: Optional[str]
    start_time: float
    end_time: float
    duration: float
    file_path: Optional[str]
    status: str
    error_message: Optional[str]
    subtitles: List[SubtitleCueSchema] = Field(default_factory=list)
    created_at: datetime
    completed_at: Optional[datetime]


class ExtractClipRequest(BaseModel):
    """Request to cut a raw vertical clip without subtitles."""
    start_time: float = Field(..., description="Start time in seconds")
    end_time: float = Field(..., description="End time in seconds")


# =============================================================================
# SEO Schemas
# =============================================================================

class SEORequest(BaseModel):
    """Request SEO metadata for a clip window."""
    clip_title: str = ""
    clip_start_time: float = 0.0
    clip_end_time: float = 0.0


class SEOResponse(BaseModel):
    """Generated SEO metadata."""
    title: str
    description: str
    tags: List[str]


# =============================================================================
# System Schemas
# =============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    ffmpeg_available: bool
    ffprobe_available: bool
    ytdlp_available: bool
    message: Optional[str] = None


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str
