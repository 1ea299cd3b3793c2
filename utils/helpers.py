from datetime import datetime, timezone

from classes.errors import ValidationError


def utc_now():
    """Naive UTC timestamp, matching what the database hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_iso(datetime_obj):
    if not datetime_obj:
        return None
    return datetime_obj.isoformat()


SETTINGS_RULES = {
    # field: (type, minimum, maximum)
    "marks_per_question": (float, 0, None),
    "negative_marking": (float, 0, None),
    "time_limit": (int, 1, None),
    "passing_percentage": (float, 0, 100),
    "max_attempts": (int, 1, None),
}
BOOLEAN_SETTINGS = ("shuffle_questions", "shuffle_options", "show_results_immediately", "allow_retake")


def validate_settings(settings):
    if not isinstance(settings, dict):
        raise ValidationError("Settings must be an object.")
    cleaned = {}
    for field, (cast, minimum, maximum) in SETTINGS_RULES.items():
        if field not in settings or settings[field] is None:
            continue
        try:
            value = cast(settings[field])
        except (TypeError, ValueError):
            raise ValidationError(f"'{field}' must be a number.")
        if minimum is not None and value < minimum:
            raise ValidationError(f"'{field}' must be at least {minimum}.")
        if maximum is not None and value > maximum:
            raise ValidationError(f"'{field}' must be at most {maximum}.")
        cleaned[field] = value
    for field in BOOLEAN_SETTINGS:
        if field in settings:
            cleaned[field] = bool(settings[field])
    return cleaned


def validate_questions(questions):
    from models.quiz_questions import QuizQuestion

    if not isinstance(questions, list):
        raise ValidationError("Questions must be a list.")
    for index, question in enumerate(questions, start=1):
        if not isinstance(question, dict):
            raise ValidationError("Each question must be a dictionary.")
        if not question.get("question_text") or "options" not in question or "correct_answer" not in question:
            raise ValidationError(f"Question {index} must have 'question_text', 'options', and 'correct_answer'.")
        if question.get("question_type", "text") not in QuizQuestion.QUESTION_TYPES:
            raise ValidationError(f"Question {index} has an unknown question_type.")
        options = question["options"]
        if not isinstance(options, list):
            raise ValidationError("'options' must be a list.")
        if not 2 <= len(options) <= 6:
            raise ValidationError(f"Question {index} must have between 2 and 6 options.")
        option_ids = []
        for option in options:
            if not isinstance(option, dict) or not option.get("id") or not option.get("text"):
                raise ValidationError(f"Every option of question {index} needs an 'id' and a 'text'.")
            option_ids.append(str(option["id"]))
        if len(set(option_ids)) != len(option_ids):
            raise ValidationError(f"Option ids of question {index} must be unique.")
        if str(question["correct_answer"]) not in option_ids:
            raise ValidationError(f"The 'correct_answer' of question {index} must be one of its option ids.")
        for field in ("marks", "negative_marks"):
            value = question.get(field)
            if value is not None and (not isinstance(value, (int, float)) or value < 0):
                raise ValidationError(f"'{field}' of question {index} must be a non-negative number.")
