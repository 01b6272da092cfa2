from pydantic import BaseModel


class AcceptedResponse(BaseModel):
    status: str = "accepted"
    job: str
    path: str | None = None


class HealthResponse(BaseModel):
    status: str
    pending_jobs: int
