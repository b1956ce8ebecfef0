"""Domain exceptions for the assessment engine."""


class AssessmentError(Exception):
    """Base error for assessment operations."""

    pass


class QuizNotFoundError(AssessmentError):
    """Raised when a quiz id does not resolve to a stored quiz."""

    def __init__(self, quiz_id: str):
        self.quiz_id = quiz_id
        super().__init__(f"Cuestionario no encontrado: {quiz_id}")


class SubmissionNotFoundError(AssessmentError):
    """Raised when a submission id does not resolve to a stored submission."""

    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        super().__init__(f"Entrega no encontrada: {submission_id}")


class InvitationNotFoundError(AssessmentError):
    """Raised when an invitation cannot be found."""

    def __init__(self, invitation_id: str):
        self.invitation_id = invitation_id
        super().__init__(f"Invitación no encontrada: {invitation_id}")


class InvalidTransitionError(AssessmentError):
    """Raised when a state machine is asked to move backwards."""

    def __init__(self, entity: str, current: str, requested: str):
        self.entity = entity
        self.current = current
        self.requested = requested
        super().__init__(f"Transición inválida de {entity}: {current} -> {requested}")


class InvitationLockedError(AssessmentError):
    """Raised when removing an invitation that is no longer PENDING."""

    def __init__(self, invitation_id: str, status: str):
        self.invitation_id = invitation_id
        self.status = status
        super().__init__(
            f"La invitación {invitation_id} está en estado {status} y no se puede eliminar"
        )


class QuestionImportError(AssessmentError):
    """Raised when a generated question payload cannot be parsed at all."""

    pass
