"""
PageQuiz Core - exam generation from paginated documents.

Main components:
- ChapterDetector / ContentLocator: which pages to examine
- PromptBuilder / GenerationClient: questions from a provider chain
- RuleBasedGenerator: heuristic questions when no provider answers
- ExamSession / Scorer: running and grading an exam
"""

from core.chapter_detector import ChapterDetector
from core.content_locator import ContentLocator
from core.document import PDFDocument, TextDocument, open_document
from core.exam_session import ExamSession, SessionState
from core.exam_types import Difficulty, ExamType
from core.generation_client import GenerationClient, GenerationResult
from core.prompt_builder import PromptBuilder
from core.provider_router import ProviderChain, ProviderRouter
from core.response_parser import ResponseParser
from core.rule_based_generator import RuleBasedGenerator
from core.scorer import Scorer
from core.text_extractor import TextExtractor

__all__ = [
    "ChapterDetector",
    "ContentLocator",
    "PDFDocument",
    "TextDocument",
    "open_document",
    "ExamSession",
    "SessionState",
    "ExamType",
    "Difficulty",
    "GenerationClient",
    "GenerationResult",
    "PromptBuilder",
    "ProviderChain",
    "ProviderRouter",
    "ResponseParser",
    "RuleBasedGenerator",
    "Scorer",
    "TextExtractor",
]
