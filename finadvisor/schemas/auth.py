from pydantic import BaseModel, ConfigDict


class UserIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None
    email: str | None = None
