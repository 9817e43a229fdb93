"""Events emitted by an inference stream and their server-sent-events encoding."""

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from modelfinder.modules.inference.models import InferenceResult, ModelCandidate


class _StreamEventBase(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude={"event"})

    def to_sse(self) -> str:
        return f"event: {self.event}\ndata: {json.dumps(self.payload())}\n\n"


class ModelsEvent(_StreamEventBase):
    event: Literal["models"] = "models"
    models: list[ModelCandidate]


class InferenceEvent(_StreamEventBase):
    event: Literal["inference"] = "inference"
    model_id: str = Field(alias="modelId")
    result: InferenceResult


class ErrorEvent(_StreamEventBase):
    event: Literal["error"] = "error"
    model_id: str = Field(alias="modelId")
    error: str

    def as_result(self) -> InferenceResult:
        return InferenceResult.failed(self.model_id, self.error)


class CompleteEvent(_StreamEventBase):
    event: Literal["complete"] = "complete"


StreamEvent = Annotated[
    Union[ModelsEvent, InferenceEvent, ErrorEvent, CompleteEvent],
    Field(discriminator="event"),
]

_stream_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def parse_sse_message(message: str) -> StreamEvent:
    """Parse one `event: ...` / `data: ...` block back into an event."""
    kind = None
    data = "{}"
    for line in message.strip().splitlines():
        if line.startswith("event:"):
            kind = line[len("event:") :].strip()
        elif line.startswith("data:"):
            data = line[len("data:") :].strip()
    if kind is None:
        raise ValueError(f"SSE message has no event line: {message!r}")
    return _stream_event_adapter.validate_python({**json.loads(data), "event": kind})
