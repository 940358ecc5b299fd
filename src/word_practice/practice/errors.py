"""Practice session errors."""


class PracticeError(Exception):
    """Base class for practice engine errors."""


class EmptySessionError(PracticeError):
    """Raised when a session is started with nothing to practice.

    Args:
        learner_id: Learner whose eligible word list was empty, if known.
    """

    def __init__(self, learner_id: str | None = None):
        self.learner_id = learner_id
        message = "No words to practice"
        if learner_id:
            message = f"No words to practice for learner {learner_id}"
        super().__init__(message)


class CollaboratorUnavailable(PracticeError):
    """Raised when a speech collaborator is missing on this host.

    Args:
        collaborator: Human-readable name of the missing collaborator.
    """

    def __init__(self, collaborator: str = "Speech recognition"):
        self.collaborator = collaborator
        super().__init__(f"{collaborator} not available")
