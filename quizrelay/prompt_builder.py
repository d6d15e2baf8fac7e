"""
Renders a QuestionRequest into the text typed into the chat input.

The wording asks the assistant for a JSON object with "answer" and
"explanation" keys, which is what the observer later looks for.
"""

import json
from typing import Iterable, List

from .models import Matching, MultipleChoice, QuestionRequest

MATCHING_INSTRUCTION = (
    "Please match each prompt with the correct choice. "
    "Format your answer as an array where each element is 'Prompt -> Choice'."
)

FILL_IN_THE_BLANK_INSTRUCTION = (
    "This is a fill in the blank question. If there are multiple blanks, provide answers "
    "as an array in order of appearance. For a single blank, you can provide a string."
)

EXACT_OPTION_INSTRUCTION = (
    "IMPORTANT: Your answer must EXACTLY match one of the above options. "
    "Do not include numbers in your answer. If there are periods, include them."
)

CLOSING_INSTRUCTION = (
    'Please provide your answer in JSON format with keys "answer" and "explanation". '
    "Explanations should be no more than one sentence. "
    "DO NOT acknowledge the correction in your response, only answer the new question."
)


def _numbered(items: Iterable[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def _correction_notice(request: QuestionRequest) -> str:
    correction = request.previous_correction
    answer = json.dumps(correction.correct_answer, ensure_ascii=False)
    return (
        f'CORRECTION FROM PREVIOUS ANSWER: For the question "{correction.prior_question}", '
        f"your answer was incorrect. The correct answer was: {answer}\n\n"
        "Now answer this new question:\n\n"
    )


def build_prompt(request: QuestionRequest) -> str:
    """
    Build the prompt text for a question.

    Args:
        request: The question to render

    Returns:
        Prompt text ready to be written into the chat input
    """
    parts: List[str] = [f"Type: {request.kind}\nQuestion: {request.prompt}"]
    options = request.options

    if request.kind == "matching":
        if isinstance(options, Matching):
            parts.append("\nPrompts:\n" + _numbered(options.prompts))
            parts.append("\nChoices:\n" + _numbered(options.choices))
        parts.append("\n\n" + MATCHING_INSTRUCTION)
    elif request.kind == "fill_in_the_blank":
        parts.append("\n\n" + FILL_IN_THE_BLANK_INSTRUCTION)
    elif isinstance(options, MultipleChoice) and options.options:
        parts.append("\nOptions:\n" + _numbered(options.options))
        parts.append("\n\n" + EXACT_OPTION_INSTRUCTION)

    parts.append("\n\n" + CLOSING_INSTRUCTION)

    text = "".join(parts)
    if request.previous_correction and request.previous_correction.is_usable:
        text = _correction_notice(request) + text
    return text
