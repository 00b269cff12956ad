from pydantic import BaseModel
from typing import Optional


class GitHubRepository(BaseModel):
    name: str
    full_name: Optional[str] = None


class GitHubWebhook(BaseModel):
    repository: GitHubRepository
