from pydantic import BaseModel, ConfigDict


class Endpoint(BaseModel):
    """
    Data model representing a single download target.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    label: str

    def __repr__(self):
        return f"Endpoint(url={self.url}, label={self.label})"
