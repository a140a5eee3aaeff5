"""SEO metadata generation for exported clips."""
import logging
from dataclasses import dataclass, field
from typing import List

from app.models.transcript import Transcript
from app.pipeline.analysis import AnalysisBackend, AnalysisError, parse_json_content

logger = logging.getLogger(__name__)

SEO_SYSTEM_PROMPT = "You are a YouTube SEO expert. You reply only with valid JSON and no additional text."

SEO_PROMPT = """You are a YouTube SEO expert with years of experience optimizing content for organic reach.

VIDEO CONTEXT:
Original video title: {video_title}
Clip title: {clip_title}
Clip transcript: {transcript}

TASK:
Write SEO metadata for a vertical YouTube Short built from this clip.

1. TITLE (at most 100 characters):
   - Catchy, with relevant keywords
   - Use numbers or concrete facts when possible
   - At most one emoji
   - Spark curiosity while staying honest about the content

2. DESCRIPTION (about 600 characters):
   - First line: a strong hook
   - Main paragraph: explain the content with keywords worked in naturally
   - A subtle call to action
   - Relevant hashtags AT THE END (#shorts #viral #trending)

3. TAGS (15-20 specific tags):
   - No generic tags such as "video", "content" or "viral"
   - Long-tail keywords for the niche and variations of the main topic
   - Write all text in {language}

RESPONSE FORMAT (strict JSON):
{{
  "title": "Optimized title",
  "description": "Description",
  "tags": ["tag1", "tag2", "tag3"]
}}

Respond ONLY with the JSON object."""

FALLBACK_CLIP_TEXT = "Video clip"


@dataclass
class SEOContent:
    title: str
    description: str
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"title": self.title, "description": self.description, "tags": list(self.tags)}


def clip_transcript_text(transcript: Transcript | None, start_time: float, end_time: float) -> str:
    """Join the transcript segments lying entirely inside [start_time, end_time]."""
    if transcript is None:
        return FALLBACK_CLIP_TEXT

    parts = [
        str(segment.get("text", "")).strip()
        for segment in transcript.segment_list()
        if segment.get("start", 0) >= start_time and segment.get("end", 0) <= end_time
    ]
    text = " ".join(p for p in parts if p)
    return text or FALLBACK_CLIP_TEXT


def parse_seo_content(content: str, backend_name: str) -> SEOContent:
    """
    Decode a backend reply into SEO content.

    Raises:
        AnalysisError: Unparseable reply or missing fields
    """
    data = parse_json_content(content, backend_name)
    if not isinstance(data, dict):
        raise AnalysisError(f"{backend_name} did not return a JSON object")

    title = str(data.get("title") or "").strip()
    if not title:
        raise AnalysisError(f"{backend_name} returned SEO content without a title")

    tags = data.get("tags") or []
    if not isinstance(tags, list):
        raise AnalysisError(f"{backend_name} returned tags that are not a list")

    return SEOContent(
        title=title,
        description=str(data.get("description") or ""),
        tags=[str(tag) for tag in tags],
    )


class SEOService:
    """Ask the analysis backend for title, description and tags of a clip."""

    def __init__(self, backend: AnalysisBackend, language: str = "Spanish"):
        self.backend = backend
        self.language = language

    async def generate(
        self,
        video_title: str,
        clip_title: str,
        transcript: Transcript | None,
        start_time: float,
        end_time: float
    ) -> SEOContent:
        """
        Generate SEO content for a clip window.

        Raises:
            AnalysisError: Backend failure or unusable reply
        """
        text = clip_transcript_text(transcript, start_time, end_time)
        if text == FALLBACK_CLIP_TEXT:
            logger.warning(f"No transcript segments found for clip range {start_time:.1f}-{end_time:.1f}")

        prompt = SEO_PROMPT.format(
            video_title=video_title or "",
            clip_title=clip_title or "",
            transcript=text,
            language=self.language,
        )
        content = await self.backend.complete(prompt, SEO_SYSTEM_PROMPT)
        seo = parse_seo_content(content, self.backend.name)
        logger.info(f"SEO generated: title={seo.title!r}, tags={len(seo.tags)}")
        return seo
