"""Error types for the coaching module.

Route handlers translate these into HTTP responses; nothing below the API
layer raises HTTPException.
"""

from zoe.core.errors import DomainError


class CoachingError(DomainError):
    """Base class for coaching business-rule errors."""


class ClientNotFoundError(CoachingError):
    def __init__(self, client_id: str):
        self.client_id = client_id
        super().__init__(f"Coaching client not found: {client_id}")


class DuplicateEnrollmentError(CoachingError):
    """Raised when a user already has a non-terminal coaching enrollment."""

    def __init__(self, user_id: str, message: str = "This user already has an active coaching enrollment."):
        self.user_id = user_id
        self.message = message
        super().__init__(message)


class InvalidOverviewError(CoachingError):
    """Raised when a week overview is missing one of its required fields."""

    def __init__(self, week_number: int, missing: list[str]):
        self.week_number = week_number
        self.missing = missing
        super().__init__(f"Week {week_number} overview is missing required fields: {', '.join(missing)}")


class OverviewMissingError(CoachingError):
    """Raised when generation or approval is attempted before the week's overview exists."""

    def __init__(self, week_number: int):
        self.week_number = week_number
        super().__init__(f"Week {week_number} overview must be saved before generating or approving plans")


class InvalidStepError(CoachingError):
    def __init__(self, index: int, total: int):
        self.index = index
        self.total = total
        super().__init__(f"Step index {index} is outside 0..{total - 1}")


class PlanIncompleteError(CoachingError):
    """Raised when a plan is approved before every week has workout and nutrition."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Plan is incomplete: {', '.join(missing)}")


class PlanWeekNotFoundError(CoachingError):
    def __init__(self, week_number: int, what: str = "workout"):
        self.week_number = week_number
        super().__init__(f"No approved {what} for week {week_number}")


class GenerationError(CoachingError):
    """Raised when the AI provider fails or returns unusable output."""

    def __init__(self, artifact: str, message: str):
        self.artifact = artifact
        super().__init__(f"Failed to generate {artifact}: {message}")


class AIUnavailableError(CoachingError):
    """Raised when no AI provider key is configured."""

    def __init__(self) -> None:
        super().__init__("No AI API key configured. Set ANTHROPIC_API_KEY or OPENAI_API_KEY.")


class ExerciseNotFoundError(CoachingError):
    def __init__(self, exercise_id: str):
        self.exercise_id = exercise_id
        super().__init__(f"Exercise not found: {exercise_id}")


class InvalidExercisePositionError(CoachingError):
    def __init__(self, day_number: int, section_index: int, exercise_index: int):
        super().__init__(f"No exercise at day {day_number}, section {section_index}, position {exercise_index}")
