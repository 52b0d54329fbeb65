"""NDJSON stream records emitted while a summary is generated.

Wire format, one JSON object per line:

* partial  - the partial payload object itself
* complete - ``{"_complete": true, **artifact}`` where ``artifact`` is the
  same ``SummaryArtifactOut`` / ``ComparisonArtifactOut`` a cache hit
  returns as ``data``, with ``cached`` false
* error    - ``{"_error": true, "error_code": ..., "message": ..., "payload"?}``

A stream carries zero or more partial records followed by exactly one
terminal record (complete or error). Consumers stop reading at the first
terminal line.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from schemas.summaries import ComparisonArtifactOut, SummaryArtifactOut


class StreamRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["partial", "complete", "error"]
    payload: dict[str, Any] | None = None
    artifact: SummaryArtifactOut | ComparisonArtifactOut | None = None
    error_code: str | None = None
    message: str | None = Field(
        default=None, description="Human readable error, error records only"
    )

    @property
    def is_terminal(self) -> bool:
        return self.kind != "partial"

    def to_wire(self) -> dict[str, Any]:
        if self.kind == "partial":
            return dict(self.payload or {})
        if self.kind == "complete" and self.artifact is not None:
            return {"_complete": True, **self.artifact.model_dump(mode="json")}
        body: dict[str, Any] = {
            "_error": True,
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.payload is not None:
            body["payload"] = dict(self.payload)
        return body

    def to_ndjson(self) -> str:  # pragma: no cover - trivial
        return json.dumps(self.to_wire(), default=str) + "\n"

    @classmethod
    def partial(cls, payload: dict[str, Any]) -> StreamRecord:
        return cls.model_validate({"kind": "partial", "payload": payload})

    @classmethod
    def complete(
        cls, artifact: SummaryArtifactOut | ComparisonArtifactOut
    ) -> StreamRecord:
        payload = (
            artifact.summary
            if isinstance(artifact, SummaryArtifactOut)
            else artifact.comparison
        )
        return cls(kind="complete", artifact=artifact, payload=payload)

    @classmethod
    def error(
        cls,
        error_code: str,
        message: str,
        payload: dict[str, Any] | None = None,
    ) -> StreamRecord:
        return cls.model_validate(
            {
                "kind": "error",
                "error_code": error_code,
                "message": message,
                "payload": payload,
            }
        )
