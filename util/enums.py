# util/enums.py
from enum import Enum


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class Complexity(str, Enum):
    SIMPLE = "simple"
    STANDARD = "standard"
    DEEP_RESEARCH = "deep_research"


class EmbeddingBackend(str, Enum):
    LOCAL = "local"
    HTTP = "http"
