# Models module
from app.models.video import Video, VideoStatus
from app.models.transcript import Transcript, SuggestedClip
from app.models.clip import Clip, ClipStatus

__all__ = ["Video", "VideoStatus", "Transcript", "SuggestedClip", "Clip", "ClipStatus"]
