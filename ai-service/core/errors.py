"""
TryFit AI Service — Error Taxonomy
Caller-input and analysis errors. Upstream (Gemini) errors are not wrapped.
"""


class CallerInputError(ValueError):
    """A required field is missing or invalid. Detected before any network call."""
    pass


class ClothingAnalysisError(RuntimeError):
    """Clothing classifier returned a response without the expected structure."""
    pass
