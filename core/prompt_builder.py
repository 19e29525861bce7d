"""
Prompt construction for exam generation.

Each question type has a template naming the exact markers the response
parser looks for (Q:, A) .. D), CORRECT:, ANSWER:, TERMS:, ...). Blocks are
separated by a line containing only "---".
"""

import math
from typing import Dict

from config import Config
from core.exam_types import Difficulty, ExamType

BLOCK_SEPARATOR = "---"

MCQ_TEMPLATE = """Generate {count} multiple choice questions. Each question should have exactly 4 options (A, B, C, D) with only one correct answer.
Format each question as:
Q: [Question text]
A) [Option A]
B) [Option B]
C) [Option C]
D) [Option D]
CORRECT: [A/B/C/D]
EXPLANATION: [Brief explanation of why this is correct]
---"""

TRUE_FALSE_TEMPLATE = """Generate {count} true/false questions. Include statements that are clearly true or false based on the content.
Format each question as:
Q: [Statement]
ANSWER: [TRUE/FALSE]
EXPLANATION: [Brief explanation]
---"""

FILL_BLANK_TEMPLATE = """Generate {count} fill-in-the-blank questions. Remove ONE key term from each sentence.
Format each question as:
Q: [Sentence with _____ for the blank]
ANSWER: [The missing word/phrase]
EXPLANATION: [Context for the answer]
---"""

MATCHING_TEMPLATE = """Generate {count} matching pairs (terms and their definitions/descriptions).
Format as:
TERMS:
1. [Term 1]
2. [Term 2]
... (continue for {count} terms)

DEFINITIONS:
A. [Definition that matches one of the terms]
B. [Definition that matches one of the terms]
... (continue for {count} definitions, shuffled order)

ANSWERS:
1-[letter], 2-[letter], ...
---"""

SHORT_ANSWER_TEMPLATE = """Generate {count} short answer questions that require 1-3 sentence responses.
Format each question as:
Q: [Question]
EXPECTED_ANSWER: [Model answer - the key points that should be mentioned]
KEY_TERMS: [Comma-separated list of key terms that indicate a correct answer]
---"""

TEMPLATES: Dict[ExamType, str] = {
    ExamType.MCQ: MCQ_TEMPLATE,
    ExamType.TRUE_FALSE: TRUE_FALSE_TEMPLATE,
    ExamType.FILL_BLANK: FILL_BLANK_TEMPLATE,
    ExamType.MATCHING: MATCHING_TEMPLATE,
    ExamType.SHORT_ANSWER: SHORT_ANSWER_TEMPLATE,
}

# Share of a comprehensive exam per question type, each rounded up
COMPREHENSIVE_RATIOS: Dict[ExamType, float] = {
    ExamType.MCQ: 0.30,
    ExamType.TRUE_FALSE: 0.20,
    ExamType.FILL_BLANK: 0.20,
    ExamType.MATCHING: 0.15,
    ExamType.SHORT_ANSWER: 0.15,
}

COMPREHENSIVE_HEADER = """Generate a comprehensive exam with a mix of question types:
- {mcq} Multiple Choice questions
- {truefalse} True/False questions
- {fillblank} Fill in the Blank questions
- {matching} Matching pairs
- {shortanswer} Short Answer questions

Clearly label each block with TYPE: [type name] on its first line, then use the format given below for that type."""

EXAM_PROMPT = """You are an expert educator creating an examination. Based on the following content, create a {difficulty} difficulty exam.

CONTENT:
{content}

INSTRUCTIONS:
{instructions}

Requirements for {difficulty_description}:
- Questions should be directly based on the content provided
- Ensure factual accuracy
- For wrong options in MCQ, make them plausible but clearly incorrect
- Explanations should help students learn from their mistakes

Generate the exam now:"""


def comprehensive_allocation(count: int) -> Dict[ExamType, int]:
    """Number of questions per type for a comprehensive exam of `count` questions."""
    return {
        exam_type: math.ceil(count * ratio) for exam_type, ratio in COMPREHENSIVE_RATIOS.items()
    }


class PromptBuilder:
    """Builds generation prompts from extracted text."""

    def __init__(self, text_limit: int = Config.PROMPT_TEXT_LIMIT):
        self.text_limit = text_limit

    def build(self, text: str, exam_type: ExamType, count: int, difficulty: Difficulty) -> str:
        """Build the full prompt.

        Args:
            text: Extracted document text (truncated to text_limit)
            exam_type: Requested exam type
            count: Requested number of questions
            difficulty: Requested difficulty

        Returns:
            Prompt string
        """
        return EXAM_PROMPT.format(
            difficulty=difficulty.value,
            content=text[: self.text_limit],
            instructions=self.instructions(exam_type, count),
            difficulty_description=difficulty.description,
        )

    def instructions(self, exam_type: ExamType, count: int) -> str:
        """Type-specific instruction block."""
        if exam_type != ExamType.COMPREHENSIVE:
            return TEMPLATES[exam_type].format(count=count)

        allocation = comprehensive_allocation(count)
        sections = [COMPREHENSIVE_HEADER.format(**{t.value: n for t, n in allocation.items()})]
        for sub_type, n in allocation.items():
            sections.append(f"TYPE: {sub_type.display_name}\n" + TEMPLATES[sub_type].format(count=n))
        return "\n\n".join(sections)
