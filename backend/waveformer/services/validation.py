"""Strict validation of job requests and queued job payloads."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from waveformer.core.errors import WaveformerError
from waveformer.schemas.job import JobPayload, JobRequest
from waveformer.services.config_store import load_config

ModelT = TypeVar("ModelT", bound=BaseModel)


class JobValidationError(WaveformerError, ValueError):
    kind = "ValidationError"


def _field_name(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc)


def describe_validation_error(exc: ValidationError) -> str:
    """Reduce a pydantic error to one message naming the offending field."""
    errors = exc.errors(include_url=False)

    extras = [_field_name(err["loc"]) for err in errors if err["type"] == "extra_forbidden"]
    if extras:
        keys = ", ".join(f"'{key}'" for key in extras)
        return f"Unrecognized key(s) in object: {keys}"

    first = errors[0]
    field = _field_name(first["loc"])
    if first["type"] == "missing":
        return f"Missing required field '{field}'."

    expected = (first.get("ctx") or {}).get("expected")
    if expected:
        return f"Invalid type of '{field}'. Expected {expected}, but received {first['input']!r}."

    message = first["msg"].removeprefix("Value error, ")
    return f"Invalid '{field}'. {message}, received {first['input']!r}."


def _validate(
    model: type[ModelT],
    data: Any,
    allowed_domains: Optional[Iterable[str]],
) -> ModelT:
    if not isinstance(data, Mapping):
        raise JobValidationError(f"Expected a JSON object, received {type(data).__name__}.")

    if allowed_domains is None:
        allowed_domains = load_config().allowed_domains

    try:
        return model.model_validate(dict(data), context={"allowed_domains": list(allowed_domains)})
    except ValidationError as exc:
        raise JobValidationError(describe_validation_error(exc)) from exc


def validate_job_request(data: Any, allowed_domains: Optional[Iterable[str]] = None) -> JobRequest:
    return _validate(JobRequest, data, allowed_domains)


def validate_job_payload(data: Any, allowed_domains: Optional[Iterable[str]] = None) -> JobPayload:
    return _validate(JobPayload, data, allowed_domains)
