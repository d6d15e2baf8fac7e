"""
Data model for one question cycle.

Everything here is scoped to a single question; nothing is persisted.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .errors import InvalidQuestion


@dataclass(frozen=True)
class MultipleChoice:
    """Plain option list (multiple choice, true/false, ...)."""
    options: Tuple[str, ...]


@dataclass(frozen=True)
class Matching:
    """Prompts to be paired with choices."""
    prompts: Tuple[str, ...]
    choices: Tuple[str, ...]


OptionSet = Union[MultipleChoice, Matching]


@dataclass(frozen=True)
class Correction:
    """The previous question and what its answer should have been."""
    prior_question: str
    correct_answer: Any

    @property
    def is_usable(self) -> bool:
        return bool(self.prior_question) and self.correct_answer not in (None, "")


@dataclass(frozen=True)
class QuestionRequest:
    """A question received from the host channel."""

    kind: str
    prompt: str
    options: Optional[OptionSet] = None
    previous_correction: Optional[Correction] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuestionRequest":
        """
        Build a request from the host's question dict.

        Expected keys: type, question, options (list, or {prompts, choices}),
        previousCorrection ({question, correctAnswer}).

        Raises:
            InvalidQuestion: If required fields are missing or mistyped
        """
        if not isinstance(data, dict):
            raise InvalidQuestion("Question must be an object")

        kind = data.get("type")
        prompt = data.get("question")
        if not isinstance(kind, str) or not kind:
            raise InvalidQuestion("Question type is missing")
        if not isinstance(prompt, str) or not prompt:
            raise InvalidQuestion("Question text is missing")

        return cls(
            kind=kind,
            prompt=prompt,
            options=_parse_options(data.get("options")),
            previous_correction=_parse_correction(data.get("previousCorrection")),
        )


def _parse_options(raw: Any) -> Optional[OptionSet]:
    if raw is None:
        return None

    if isinstance(raw, dict):
        prompts = raw.get("prompts") or []
        choices = raw.get("choices") or []
        if not isinstance(prompts, list) or not isinstance(choices, list):
            raise InvalidQuestion("Matching options need 'prompts' and 'choices' lists")
        return Matching(
            prompts=tuple(str(p) for p in prompts),
            choices=tuple(str(c) for c in choices),
        )

    if isinstance(raw, list):
        return MultipleChoice(options=tuple(str(o) for o in raw))

    raise InvalidQuestion(f"Unsupported options value: {type(raw).__name__}")


def _parse_correction(raw: Any) -> Optional[Correction]:
    if not isinstance(raw, dict):
        return None
    return Correction(
        prior_question=str(raw.get("question") or ""),
        correct_answer=raw.get("correctAnswer"),
    )


@dataclass(frozen=True)
class ExtractedPayload:
    """A parsed reply payload plus the exact text it was parsed from."""
    answer: Any
    explanation: str = ""
    raw: str = ""


@dataclass
class ObservationSession:
    """
    State of one observation period.

    responded only ever goes False -> True; a new question gets a new session.
    """
    baseline_message_count: int = 0
    start_time: Optional[float] = None
    responded: bool = False
    active: bool = False

    def age(self, now: float) -> float:
        """Seconds since observation started (0 before start)."""
        if self.start_time is None:
            return 0.0
        return now - self.start_time
