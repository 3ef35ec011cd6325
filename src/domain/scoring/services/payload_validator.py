"""Task-specific payload validation."""

from typing import Any, Callable, Dict, Mapping

from ..entities.attempt import Attempt
from ..exceptions import InvalidPayload, UnsupportedTask
from ..value_objects.task_type import TaskType

MIN_WRITING_LENGTH = 50
MIN_TRANSCRIPT_LENGTH = 20
MIN_SOURCE_TEXT_LENGTH = 100
MIN_MEDIATION_OUTPUT_LENGTH = 50


def _text(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    return value if isinstance(value, str) else ""


def _non_empty_mapping(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key)
    return isinstance(value, Mapping) and len(value) > 0


def _non_empty_list(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key)
    return isinstance(value, (list, tuple)) and len(value) > 0


class PayloadValidator:
    """Validates attempt payloads before any backend is called."""

    def __init__(self):
        self._rules: Dict[TaskType, Callable[[Mapping[str, Any]], None]] = {
            TaskType.WRITING: self._validate_writing,
            TaskType.SPEAKING: self._validate_speaking,
            TaskType.READING: self._validate_reading,
            TaskType.LISTENING: self._validate_listening,
            TaskType.USE_OF_ENGLISH: self._validate_use_of_english,
            TaskType.MEDIATION: self._validate_mediation,
        }

    def validate(self, attempt: Attempt) -> None:
        """Raise InvalidPayload if the attempt payload breaks its task rules."""
        rule = self._rules.get(attempt.task)
        if rule is None:
            raise UnsupportedTask(f"No payload rules for task {attempt.task}", task=str(attempt.task))

        rule(attempt.payload)

    def is_valid(self, attempt: Attempt) -> bool:
        try:
            self.validate(attempt)
            return True
        except InvalidPayload:
            return False

    def _validate_writing(self, payload: Mapping[str, Any]) -> None:
        text = _text(payload, "text")
        if len(text.strip()) == 0:
            raise InvalidPayload("Writing payload requires text", task="writing")
        if len(text) < MIN_WRITING_LENGTH:
            raise InvalidPayload(
                f"Writing text must be at least {MIN_WRITING_LENGTH} characters "
                f"(got {len(text)})",
                task="writing",
            )

    def _validate_speaking(self, payload: Mapping[str, Any]) -> None:
        if _text(payload, "audio_url").strip():
            return
        if len(_text(payload, "transcript")) >= MIN_TRANSCRIPT_LENGTH:
            return
        raise InvalidPayload(
            "Speaking payload requires an audio reference or a transcript of at least "
            f"{MIN_TRANSCRIPT_LENGTH} characters",
            task="speaking",
        )

    def _validate_reading(self, payload: Mapping[str, Any]) -> None:
        self._require_answers(payload, "reading")
        if not _non_empty_list(payload, "text_passages"):
            raise InvalidPayload("Reading payload requires text passages", task="reading")

    def _validate_listening(self, payload: Mapping[str, Any]) -> None:
        self._require_answers(payload, "listening")
        if not _non_empty_list(payload, "audio_urls"):
            raise InvalidPayload("Listening payload requires audio references", task="listening")

    def _validate_use_of_english(self, payload: Mapping[str, Any]) -> None:
        self._require_answers(payload, "use_of_english")
        if not _non_empty_list(payload, "text_passages"):
            raise InvalidPayload(
                "Use of English payload requires text passages", task="use_of_english"
            )

    def _validate_mediation(self, payload: Mapping[str, Any]) -> None:
        if len(_text(payload, "source_text")) < MIN_SOURCE_TEXT_LENGTH:
            raise InvalidPayload(
                f"Mediation source text must be at least {MIN_SOURCE_TEXT_LENGTH} characters",
                task="mediation",
            )
        if len(_text(payload, "output")) < MIN_MEDIATION_OUTPUT_LENGTH:
            raise InvalidPayload(
                f"Mediation output must be at least {MIN_MEDIATION_OUTPUT_LENGTH} characters",
                task="mediation",
            )

    @staticmethod
    def _require_answers(payload: Mapping[str, Any], task: str) -> None:
        if not _non_empty_mapping(payload, "answers"):
            raise InvalidPayload(f"{task} payload requires answers", task=task)
