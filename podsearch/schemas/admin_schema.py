from typing import Dict

from pydantic import BaseModel


class DashboardResponse(BaseModel):
    podcasts: int
    episodes: int
    episodes_by_status: Dict[str, int]
    segments: int
    clips: int
    active_jobs: int
