"""
Exception classes shared by the extraction and normalization services.
"""

from typing import Optional


class LarderError(Exception):
    """Base exception for recipe ingestion"""
    pass


class ExtractionFailed(LarderError):
    """Raised when no extraction strategy produced a usable recipe"""
    def __init__(self, source_url: str):
        self.source_url = source_url
        super().__init__(f"Could not extract a recipe from {source_url}")


class NormalizationFailed(LarderError):
    """Raised when the external ingredient normalizer fails or returns a bad batch"""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Ingredient normalization failed: {reason}")


class MalformedStructuredData(LarderError):
    """Raised when a single structured-data block cannot be decoded"""
    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"Structured-data block {index} is malformed: {reason}")


class FetchError(LarderError):
    """Raised when the source page cannot be retrieved"""
    def __init__(
        self,
        url: str,
        message: str,
        status_code: Optional[int] = None,
        error_code: str = "fetch_failed",
    ):
        self.url = url
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class RecipeNotFound(LarderError):
    """Raised when a recipe id is unknown to the store"""
    def __init__(self, recipe_id: str):
        self.recipe_id = recipe_id
        super().__init__(f"Recipe {recipe_id} not found")
