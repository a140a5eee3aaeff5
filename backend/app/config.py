"""Application configuration."""
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # App settings
    app_name: str = "ShortGenerator"
    debug: bool = False

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8080

    # Database
    database_url: str = "sqlite+aiosqlite:///./storage/database.db"

    # Storage directories
    storage_dir: Path = Path("./storage")
    videos_dir: Path = Path("./storage/videos")
    transcripts_dir: Path = Path("./storage/transcripts")
    clips_dir: Path = Path("./storage/clips")
    temp_dir: Path = Path("./storage/temp")

    # External tools
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    ytdlp_path: str = "yt-dlp"

    # Transcription (Whisper API). No key means placeholder transcripts.
    openai_api_key: Optional[str] = None
    openai_api_url: str = "https://api.openai.com/v1"
    whisper_model: str = "whisper-1"

    # Analysis backends
    deepseek_api_key: Optional[str] = None
    deepseek_api_url: str = "https://api.deepseek.com"
    deepseek_model: str = "deepseek-chat"
    use_ollama: bool = False
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "deepseek-r1:latest"
    analysis_temperature: float = 0.7
    analysis_max_tokens: int = 4000
    analysis_language: str = "Spanish"

    # Network ceiling for backend calls (seconds)
    http_timeout_seconds: float = 120.0

    # Pause after each status notification so slow sockets can flush
    download_status_delay_seconds: float = 0.5
    status_delay_seconds: float = 0.3

    # Render settings
    vertical_width: int = 1080
    vertical_height: int = 1920
    render_video_codec: str = "libx264"
    render_video_preset: str = "medium"
    extract_video_preset: str = "fast"
    render_video_crf: int = 18
    render_pixel_format: str = "yuv420p"
    render_audio_codec: str = "aac"
    render_audio_bitrate: str = "192k"

    # Frontend
    frontend_url: str = "http://localhost:5173"


settings = Settings()

# Ensure directories exist
for _directory in (
    settings.storage_dir,
    settings.videos_dir,
    settings.transcripts_dir,
    settings.clips_dir,
    settings.temp_dir,
):
    _directory.mkdir(parents=True, exist_ok=True)
