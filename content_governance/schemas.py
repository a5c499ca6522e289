from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SubmissionRequest(BaseModel):
    # the text lives in the configured content field, so unknown keys are kept
    model_config = ConfigDict(extra="allow")

    metadata: dict[str, Any] = Field(default_factory=dict)


class ReportRequest(BaseModel):
    # any truthy value identifies content; the ledger checks blanks and stringifies
    model_config = ConfigDict(populate_by_name=True)

    content_id: Any = Field(default=None, alias="contentId")
    reason: Any = None
    category: Any = None
