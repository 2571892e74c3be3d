# model/api.py
from pydantic import BaseModel
from util.types import EventType


class StreamEvent(BaseModel):
    type: EventType
    payload: dict
