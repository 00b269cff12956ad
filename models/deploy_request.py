from pydantic import BaseModel


class DeployRequest(BaseModel):
    repository: str
