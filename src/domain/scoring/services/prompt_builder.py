"""Task-specific scoring prompt templates."""

import json
from typing import Any, Dict, Mapping

from ..entities.attempt import Attempt
from ..entities.rubric import Rubric
from ..exceptions import UnsupportedTask
from ..value_objects.task_type import TaskType

WRITING_TEMPLATE = """Please score this {level} writing response according to the {provider} rubric.

RUBRIC:
{rubric}

WRITING PROMPT:
{prompt}

STUDENT RESPONSE:
{text}

TASK TYPE: {task_type}
WORD LIMIT: {word_limit}

Please evaluate the response against each criterion in the rubric and provide a detailed assessment with specific evidence."""

SPEAKING_TEMPLATE = """Please score this {level} speaking response according to the {provider} rubric.

RUBRIC:
{rubric}

SPEAKING PROMPT:
{prompt}

TRANSCRIPT:
{transcript}

DURATION: {duration} seconds
TASK TYPE: {task_type}

Please evaluate the response against each criterion in the rubric. If transcript is not available, focus on audio analysis for pronunciation, fluency, and intonation."""

READING_TEMPLATE = """Please score these {level} reading answers according to the {provider} rubric.

RUBRIC:
{rubric}

TEXT PASSAGES:
{passages}

QUESTION TYPES: {question_types}

STUDENT ANSWERS:
{answers}

Please evaluate each answer against the passages and the rubric criteria, citing the answers that support each score."""

LISTENING_TEMPLATE = """Please score these {level} listening answers according to the {provider} rubric.

RUBRIC:
{rubric}

AUDIO REFERENCES:
{audio_urls}

TRANSCRIPTS:
{transcripts}

QUESTION TYPES: {question_types}

STUDENT ANSWERS:
{answers}

Please evaluate each answer against the audio content and the rubric criteria, citing the answers that support each score."""

USE_OF_ENGLISH_TEMPLATE = """Please score these {level} use of English answers according to the {provider} rubric.

RUBRIC:
{rubric}

TEXT PASSAGES:
{passages}

TASK TYPES: {task_types}

STUDENT ANSWERS:
{answers}

Please evaluate grammatical and lexical accuracy of each answer against the rubric criteria."""

MEDIATION_TEMPLATE = """Please score this {level} mediation response according to the {provider} rubric.

RUBRIC:
{rubric}

SOURCE TEXT ({source_language}):
{source_text}

MEDIATION TYPE: {mediation_type}
TARGET LANGUAGE: {target_language}
CONTEXT: {context}

STUDENT OUTPUT:
{output}

Please evaluate how well the output conveys the source content for the stated purpose, against each criterion in the rubric."""

SYSTEM_PROMPT = """You are an expert language assessor for {provider} {level} {task} tasks.

Your task is to score student responses according to the provided rubric with complete objectivity and consistency.

CRITICAL REQUIREMENTS:
1. Follow the rubric exactly - do not deviate from the criteria or scoring bands
2. Provide specific evidence for each score
3. Be fair and consistent across all responses
4. Return only valid JSON in the specified format
5. Always include confidence scores

Your response MUST be valid JSON with this exact structure:
{{
  "total_score": number,
  "max_score": number,
  "criteria_scores": [
    {{
      "criterion_id": "string",
      "score": number,
      "max_score": number,
      "band": number,
      "evidence": ["string"],
      "confidence": number
    }}
  ],
  "overall_feedback": "string",
  "strengths": ["string"],
  "improvement_areas": ["string"],
  "confidence": number
}}"""


def _as_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, sort_keys=True, default=str)


def _as_list(value: Any) -> str:
    if not value:
        return "Not provided"
    if isinstance(value, (list, tuple)):
        return "\n".join(f"[{index + 1}] {item}" for index, item in enumerate(value))
    return str(value)


class PromptBuilder:
    """Renders scoring prompts. Template choice depends only on the task type."""

    TEMPLATES: Dict[TaskType, str] = {
        TaskType.WRITING: WRITING_TEMPLATE,
        TaskType.SPEAKING: SPEAKING_TEMPLATE,
        TaskType.READING: READING_TEMPLATE,
        TaskType.LISTENING: LISTENING_TEMPLATE,
        TaskType.USE_OF_ENGLISH: USE_OF_ENGLISH_TEMPLATE,
        TaskType.MEDIATION: MEDIATION_TEMPLATE,
    }

    def template_for(self, task: Any) -> str:
        task_type = TaskType.parse(task)
        template = self.TEMPLATES.get(task_type)
        if template is None:
            raise UnsupportedTask(f"No prompt template for task {task_type.value}", task=task_type.value)
        return template

    def build_prompt(self, attempt: Attempt, rubric: Rubric) -> str:
        """Render the task prompt embedding rubric, payload and task metadata."""
        if attempt.task != rubric.task:
            raise UnsupportedTask(
                f"Rubric for {rubric.task.value} cannot score a {attempt.task.value} attempt",
                task=attempt.task.value,
            )

        template = self.template_for(attempt.task)
        context = {
            "level": rubric.level,
            "provider": rubric.provider,
            "rubric": _as_json(rubric.to_prompt_dict()),
            **self._payload_context(attempt.task, attempt.payload),
        }
        return template.format(**context).strip()

    def build_system_prompt(self, attempt: Attempt) -> str:
        """Render the system instruction listing the required JSON output."""
        return SYSTEM_PROMPT.format(
            provider=attempt.provider, level=attempt.level, task=attempt.task.value
        )

    def _payload_context(self, task: TaskType, payload: Mapping[str, Any]) -> Dict[str, Any]:
        if task == TaskType.WRITING:
            return {
                "prompt": payload.get("prompt", ""),
                "text": payload.get("text", ""),
                "task_type": payload.get("task_type") or "essay",
                "word_limit": payload.get("word_limit") or "Not specified",
            }

        if task == TaskType.SPEAKING:
            return {
                "prompt": payload.get("prompt", ""),
                "transcript": payload.get("transcript")
                or "[Audio transcript not available - scoring based on audio analysis]",
                "duration": payload.get("duration_seconds", "unknown"),
                "task_type": payload.get("task_type") or "monologue",
            }

        if task == TaskType.READING:
            return {
                "passages": _as_list(payload.get("text_passages")),
                "question_types": ", ".join(payload.get("question_types") or []) or "Not specified",
                "answers": _as_json(dict(payload.get("answers") or {})),
            }

        if task == TaskType.LISTENING:
            return {
                "audio_urls": _as_list(payload.get("audio_urls")),
                "transcripts": _as_list(payload.get("transcripts")),
                "question_types": ", ".join(payload.get("question_types") or []) or "Not specified",
                "answers": _as_json(dict(payload.get("answers") or {})),
            }

        if task == TaskType.USE_OF_ENGLISH:
            return {
                "passages": _as_list(payload.get("text_passages")),
                "task_types": ", ".join(payload.get("task_types") or []) or "Not specified",
                "answers": _as_json(dict(payload.get("answers") or {})),
            }

        return {
            "source_text": payload.get("source_text", ""),
            "source_language": payload.get("source_language", "unknown"),
            "target_language": payload.get("target_language", "unknown"),
            "mediation_type": payload.get("mediation_type", "summary"),
            "context": payload.get("context") or "Not specified",
            "output": payload.get("output", ""),
        }
