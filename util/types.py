# util/types.py
from typing import Literal, TypedDict


# Flow: Narrow types for verification stream events.
EventType = Literal["progress", "result", "error"]


class ProgressPayload(TypedDict):
    current: int
    total: int
    status: str


class ErrorPayload(TypedDict, total=False):
    message: str
