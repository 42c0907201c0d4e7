"""
Exceptions raised by providers and parsers.

None of these ever escape the pipeline for a single item: the stage or engine
that made the call catches them and degrades to its documented fallback.
"""


class ProspectEngineError(Exception):
    """Base class for prospect engine errors"""


class ProviderUnavailableError(ProspectEngineError):
    """A search or text-generation call could not be completed"""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class UnparseableResponseError(ProspectEngineError):
    """Model output was not valid JSON or lacked the expected shape"""

    def __init__(self, message: str, raw: str = ""):
        self.raw = raw[:200]
        super().__init__(message)
