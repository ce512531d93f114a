class DowntimeSubmissionError(Exception):
    status_code: int = 500
    error_code: str = "downtime_submission_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(DowntimeSubmissionError):
    status_code = 400
    error_code = "validation_failed"

    def __init__(
        self,
        message: str,
        *,
        missing_fields: list[str] | None = None,
        invalid_time_range: bool = False,
        category: str | None = None,
    ) -> None:
        super().__init__(message)
        self.missing_fields = list(missing_fields or [])
        self.invalid_time_range = invalid_time_range
        self.category = category

    @classmethod
    def for_missing_fields(cls, missing_fields: list[str]) -> "ValidationFailed":
        return cls(f"Missing required fields: {', '.join(missing_fields)}", missing_fields=missing_fields)


class AllocationFailed(DowntimeSubmissionError):
    error_code = "allocation_failed"


class PersistenceFailed(DowntimeSubmissionError):
    error_code = "persistence_failed"

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class AlertDeliveryFailed(DowntimeSubmissionError):
    error_code = "alert_delivery_failed"
