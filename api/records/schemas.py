"""
Request bodies for record endpoints.

Unknown keys are rejected and values are not coerced between JSON types.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CreateRecordRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    content: str = ""
    author: str = ""


class UpdateRecordRequest(BaseModel):
    # Omitted (or null) fields keep their stored value.
    model_config = ConfigDict(extra="forbid", strict=True)

    content: str | None = None
    author: str | None = None
