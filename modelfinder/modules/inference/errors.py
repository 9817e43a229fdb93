"""Errors raised while running candidate inference."""


class InferenceError(Exception):
    """Base class for failures of a single model's inference call."""


class TransientCallError(InferenceError):
    """Network failure, timeout or non-2xx response. Retried."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class ExhaustedRetriesError(InferenceError):
    """Every attempt failed with a transient error."""

    def __init__(self, endpoint: str, attempts: int, last_error: Exception):
        self.endpoint = endpoint
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Inference failed after {attempts} attempts: {last_error}"
        )


class MalformedResponseError(InferenceError):
    """The backend answered 2xx with a body we cannot parse. Not retried."""


class InferenceConfigurationError(InferenceError):
    """The client cannot issue calls at all, e.g. no API key configured."""


class DuplicateCandidateError(ValueError):
    def __init__(self, candidate_ids: list[str]):
        self.candidate_ids = candidate_ids
        super().__init__(f"Duplicate candidate ids: {', '.join(candidate_ids)}")


def ensure_unique_ids(candidate_ids: list[str]) -> None:
    seen: set[str] = set()
    duplicates: list[str] = []
    for candidate_id in candidate_ids:
        if candidate_id in seen and candidate_id not in duplicates:
            duplicates.append(candidate_id)
        seen.add(candidate_id)
    if duplicates:
        raise DuplicateCandidateError(duplicates)
