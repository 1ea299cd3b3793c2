class QuizError(Exception):
    """Base error for the quiz engine; carries the HTTP status it maps to."""

    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"success": False, "error": self.message, "code": type(self).__name__}


class ValidationError(QuizError):
    status_code = 400


class NotFound(QuizError):
    status_code = 404


class Forbidden(QuizError):
    status_code = 403


class AttemptLimitExceeded(QuizError):
    status_code = 403


class AttemptExpired(QuizError):
    status_code = 409


class InvalidAnswer(QuizError):
    status_code = 400


class AlreadySubmitted(QuizError):
    status_code = 409


class QuizDataError(QuizError):
    """Authoring data the scoring engine cannot grade."""

    status_code = 500
