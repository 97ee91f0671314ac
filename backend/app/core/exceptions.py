class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ScheduleValidationError(AppError):
    """Raised when a timetable or assignment is missing a required field or is malformed."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class DuplicateScheduleError(AppError):
    """Raised when a timetable already exists for a class identity."""
    def __init__(self, identity: dict, existing_id: str):
        super().__init__(
            "Timetable already exists for this class. Use the update endpoint to modify it.",
            status_code=409,
            details={"identity": identity, "existing_id": existing_id},
        )

class TeacherConflictError(AppError):
    """Raised when a proposed assignment would double-book a teacher."""
    def __init__(self, conflicts: list[dict]):
        teacher_ids = sorted({item["teacher_id"] for item in conflicts})
        super().__init__(
            "teacher already assigned",
            status_code=409,
            details={"teacher_ids": teacher_ids, "conflicts": conflicts},
        )

class SlotUnavailableError(AppError):
    """Raised when a two-slot session has no free slot to continue into."""
    def __init__(self, message: str = "no contiguous slot available", details: dict = None):
        super().__init__(message, status_code=409, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)
