"""Errors surfaced by the exam pipeline.

Only terminal failures are raised. Failures of a single chapter detection
tier or a single provider are absorbed by the next fallback and logged.
"""

from typing import List, Optional, Tuple


class ExamError(Exception):
    """Base class for exam pipeline errors."""

    pass


class DocumentUnavailable(ExamError):
    """Raised when there is no active document to read."""

    def __init__(self, message: str = "No document loaded"):
        super().__init__(message)


class InsufficientContent(ExamError):
    """Raised when the selected pages hold too little text to examine."""

    def __init__(self, length: int, minimum: int):
        self.length = length
        self.minimum = minimum
        super().__init__(
            f"Not enough text content in the selected pages "
            f"({length} characters, need at least {minimum})"
        )


class NoContentForChapters(ExamError):
    """Raised when a chapter selection resolves to no pages."""

    def __init__(self, chapter_ids: Optional[List[int]] = None):
        self.chapter_ids = list(chapter_ids or [])
        super().__init__(f"Selected chapters contain no pages: {self.chapter_ids}")


class GenerationExhausted(ExamError):
    """Raised when every provider and the rule-based fallback produced nothing."""

    def __init__(self, failures: Optional[List[Tuple[str, str]]] = None):
        self.failures = list(failures or [])
        super().__init__(
            f"No questions could be generated ({len(self.failures)} provider failures, "
            f"rule-based fallback found no usable sentences)"
        )


class InvalidSessionState(ExamError):
    """Raised when a session transition is requested from the wrong state."""

    pass
