from pydantic import BaseModel, Field, ConfigDict


class UserShort(BaseModel):
    """Display info of another user."""
    id: int = Field(gt=0)
    name: str = Field(min_length=1)
    public_uuid: str

    model_config = ConfigDict(from_attributes=True)
