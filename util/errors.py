# util/errors.py
class EngineError(Exception):
    # Flow: raised for programming errors the engine must not swallow.
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NoPassagesError(EngineError):
    def __init__(self, message: str = "No passages available for retrieval") -> None:
        super().__init__(message)


class DimensionMismatchError(EngineError):
    def __init__(self, left: int, right: int) -> None:
        super().__init__(f"Dimension mismatch: {left} vs {right}")
        self.left = left
        self.right = right


class ProviderError(EngineError):
    """External provider is misconfigured or returned something unusable."""
