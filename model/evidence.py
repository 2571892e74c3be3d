# model/evidence.py
from pydantic import BaseModel, Field


class PassagePayload(BaseModel):
    text: str
    sourceId: str
    sourceIndex: int = Field(ge=1)
    sourceTitle: str = ""


class EmbeddingsDimensions(BaseModel):
    rows: int = Field(ge=0)
    cols: int = Field(ge=0)


class EncodedEvidence(BaseModel):
    """
    Transfer form of evidence prepared by an earlier stage.
    Embeddings are float32 little-endian, row-major, base64-encoded.
    """

    passages: list[PassagePayload]
    embeddingsBase64: str
    embeddingsDimensions: EmbeddingsDimensions
