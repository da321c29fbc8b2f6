"""
Request payload validation for the quiz API.

Validators check shape and basic constraints only and return cleaned
values. Every problem found is collected so the caller receives the full
list in one ``ValidationError``. Rules that need the store (name
uniqueness, participant existence, state transitions) are enforced by the
services.
"""
from typing import Any, List, Optional, Tuple

from flask import current_app

from quizhub.common.timeutils import parse_iso
from quizhub.quiz.errors import ValidationError
from quizhub.quiz.lifecycle import TRANSITION_TARGETS, UNSET


def _is_int(value: Any) -> bool:
    # bool is a subclass of int and must not pass as an id
    return isinstance(value, int) and not isinstance(value, bool)


def _is_positive_int(value: Any) -> bool:
    return _is_int(value) and value > 0


class QuizPayloadValidator:
    """Validators for quiz request bodies."""

    @classmethod
    def validate_create(cls, payload: Any) -> dict:
        """
        Validate a create request.

        Returns:
            ``{"name": str, "questions": list, "assigned_user_ids": list}``
        """
        errors: List[str] = []
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        name = cls._clean_name(payload.get('name'), errors)

        questions = payload.get('questions')
        cleaned_questions = []
        if not isinstance(questions, list) or not questions:
            errors.append("questions must be a non-empty list")
        else:
            for index, question in enumerate(questions):
                cleaned = cls._clean_question(question, index, errors, partial=False)
                if cleaned is not None:
                    cleaned_questions.append(cleaned)

        user_ids = cls._clean_user_ids(payload.get('assigned_user_ids', []), errors)

        if errors:
            raise ValidationError("Invalid quiz data", details=errors)
        return {'name': name, 'questions': cleaned_questions, 'assigned_user_ids': user_ids}

    @classmethod
    def validate_update(cls, payload: Any) -> dict:
        """
        Validate a nested update request. Every key is optional; only the
        keys present in the payload are returned.
        """
        errors: List[str] = []
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        changes = {}
        if 'name' in payload:
            changes['name'] = cls._clean_name(payload['name'], errors)
        if 'status' in payload:
            changes['status'] = cls._clean_status(payload['status'], errors)
        if 'expires_at' in payload:
            changes['expires_at'] = cls._clean_expires_at(payload['expires_at'], errors)
        if 'assigned_user_ids' in payload:
            changes['assigned_user_ids'] = cls._clean_user_ids(payload['assigned_user_ids'], errors)
        if 'questions' in payload:
            questions = payload['questions']
            if not isinstance(questions, list):
                errors.append("questions must be a list")
            else:
                changes['questions'] = []
                for index, question in enumerate(questions):
                    cleaned = cls._clean_question(question, index, errors, partial=True)
                    if cleaned is not None:
                        changes['questions'].append(cleaned)

        if errors:
            raise ValidationError("Invalid quiz data", details=errors)
        if not changes:
            raise ValidationError("No changes provided")
        return changes

    @classmethod
    def validate_status(cls, payload: Any) -> Tuple[str, Any]:
        """
        Validate a status change request.

        Returns:
            ``(status, expires_at)`` where ``expires_at`` is ``UNSET`` when the
            key was absent and ``None`` when it was explicitly null
        """
        errors: List[str] = []
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        status = cls._clean_status(payload.get('status'), errors)
        expires_at = UNSET
        if 'expires_at' in payload:
            expires_at = cls._clean_expires_at(payload['expires_at'], errors)

        if errors:
            raise ValidationError("Invalid status change", details=errors)
        return status, expires_at

    @classmethod
    def validate_answers(cls, payload: Any) -> List[dict]:
        """
        Validate a submission body of the form
        ``{"answers": [{"question_id": int, "option_id": int}, ...]}``.

        An empty list passes; the assessment engine rejects it.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")
        answers = payload.get('answers')
        if answers is None:
            return []
        if not isinstance(answers, list):
            raise ValidationError("answers must be a list")

        errors: List[str] = []
        cleaned = []
        for index, answer in enumerate(answers):
            if not isinstance(answer, dict):
                errors.append(f"answers[{index}] must be an object")
                continue
            question_id = answer.get('question_id')
            option_id = answer.get('option_id')
            if not _is_positive_int(question_id):
                errors.append(f"answers[{index}].question_id must be a positive integer")
            if not _is_positive_int(option_id):
                errors.append(f"answers[{index}].option_id must be a positive integer")
            cleaned.append({'question_id': question_id, 'option_id': option_id})

        if errors:
            raise ValidationError("Invalid answers", details=errors)
        return cleaned

    @staticmethod
    def _clean_name(value: Any, errors: List[str]) -> Optional[str]:
        min_length = current_app.config.get('QUIZ_NAME_MIN_LENGTH', 3)
        max_length = current_app.config.get('QUIZ_NAME_MAX_LENGTH', 255)
        if not isinstance(value, str):
            errors.append("name is required")
            return None
        name = value.strip()
        if not min_length <= len(name) <= max_length:
            errors.append(f"name must be between {min_length} and {max_length} characters")
        return name

    @staticmethod
    def _clean_status(value: Any, errors: List[str]) -> Optional[str]:
        if value not in TRANSITION_TARGETS:
            errors.append(f"status must be one of {', '.join(TRANSITION_TARGETS)}")
            return None
        return value

    @staticmethod
    def _clean_expires_at(value: Any, errors: List[str]):
        if value is None:
            return None
        try:
            return parse_iso(value)
        except ValueError:
            errors.append("expires_at must be an ISO-8601 timestamp or null")
            return None

    @staticmethod
    def _clean_user_ids(value: Any, errors: List[str]) -> List[int]:
        if not isinstance(value, list):
            errors.append("assigned_user_ids must be a list")
            return []
        bad = [v for v in value if not _is_positive_int(v)]
        if bad:
            errors.append("assigned_user_ids must contain positive integers only")
            return []
        return list(value)

    @classmethod
    def _clean_question(cls, value: Any, index: int, errors: List[str], partial: bool) -> Optional[dict]:
        """
        Validate one question. With ``partial`` set an item carrying an id
        may omit its text and options; items without an id are always full.
        """
        where = f"questions[{index}]"
        if not isinstance(value, dict):
            errors.append(f"{where} must be an object")
            return None

        cleaned = {}
        question_id = value.get('id')
        if partial and question_id is not None:
            if not _is_positive_int(question_id):
                errors.append(f"{where}.id must be a positive integer")
            cleaned['id'] = question_id
        full = not partial or question_id is None

        min_text = current_app.config.get('QUESTION_TEXT_MIN_LENGTH', 5)
        text = value.get('question_text')
        if text is not None or full:
            if not isinstance(text, str) or len(text.strip()) < min_text:
                errors.append(f"{where}.question_text must be at least {min_text} characters")
            else:
                cleaned['question_text'] = text.strip()

        options = value.get('options')
        if options is not None or full:
            if not isinstance(options, list) or not options:
                errors.append(f"{where}.options must be a non-empty list")
            else:
                cleaned['options'] = cls._clean_options(options, where, errors)

        return cleaned

    @staticmethod
    def _clean_options(options: List[Any], where: str, errors: List[str]) -> List[dict]:
        cleaned = []
        for index, option in enumerate(options):
            if not isinstance(option, dict):
                errors.append(f"{where}.options[{index}] must be an object")
                continue
            value = option.get('value')
            if not isinstance(value, str) or not value.strip():
                errors.append(f"{where}.options[{index}].value must be a non-empty string")
                continue
            is_correct = option.get('is_correct', False)
            if not isinstance(is_correct, bool):
                errors.append(f"{where}.options[{index}].is_correct must be a boolean")
                continue
            cleaned.append({'value': value.strip(), 'is_correct': is_correct})
        return cleaned
