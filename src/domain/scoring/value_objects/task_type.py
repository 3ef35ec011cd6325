"""Task type value object."""

from enum import Enum

from ..exceptions import UnsupportedTask


class TaskType(Enum):
    """Closed set of exam task types the engine can score."""

    WRITING = "writing"
    SPEAKING = "speaking"
    READING = "reading"
    LISTENING = "listening"
    USE_OF_ENGLISH = "use_of_english"
    MEDIATION = "mediation"

    @classmethod
    def parse(cls, value) -> "TaskType":
        """Parse a task type, accepting the hyphenated use-of-english spelling."""
        if isinstance(value, cls):
            return value

        normalized = str(value).strip().lower().replace("-", "_")
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedTask(f"Unsupported task type: {value}", task=str(value))
