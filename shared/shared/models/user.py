from pydantic import BaseModel, ConfigDict


class CurrentUser(BaseModel):
    """Authenticated caller, decoded from the bearer token."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: int
    username: str = ""
