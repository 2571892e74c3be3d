# model/source.py
from pydantic import BaseModel, ConfigDict


class Source(BaseModel):
    """A retrieved document. Its position in the source list defines citation number [n]."""

    model_config = ConfigDict(frozen=True)

    id: str
    url: str = ""
    title: str = ""
    snippet: str = ""
    publishedDate: str | None = None
    fromQuery: str | None = None
