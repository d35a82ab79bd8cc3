# podsearch/models/orm/__init__.py
from .base import Base
from .user import User
from .podcast import Podcast
from .episode import Episode
from .transcript import Transcript
from .segment import Segment
from .clip import Clip
from .transcription_job import TranscriptionJob
