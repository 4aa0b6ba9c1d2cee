"""Acquisition option schemas."""

import json
from typing import Any

import pydantic
from pydantic import BaseModel, Field, field_validator

from gitextractor.exceptions import ValidationError


class AcquisitionOptions(BaseModel):
    """Everything needed to locate and open a repository for one run."""

    repo_id: str = Field(min_length=1)
    url: str = Field(min_length=1)
    user: str | None = None
    password: str | None = Field(default=None, repr=False)
    proxy: str | None = None
    private_key: str | None = Field(default=None, repr=False)
    passphrase: str | None = Field(default=None, repr=False)

    @field_validator("proxy", mode="after")
    @classmethod
    def validate_proxy(cls, v: str | None) -> str | None:
        """Only plain HTTP proxies are supported by the clone transport."""
        if v and not v.startswith("http://"):
            raise ValueError("only http:// proxies are supported")
        return v or None

    @property
    def raw_data_params(self) -> str:
        """Provenance string stamped on every row written for this run."""
        return json.dumps({"RepoUrl": self.url})

    @classmethod
    def parse(cls, data: dict[str, Any]) -> "AcquisitionOptions":
        """Validate ``data``, raising the ingestion ``ValidationError``."""
        try:
            return cls.model_validate(data)
        except pydantic.ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ValidationError(f"Invalid acquisition options: {problems}") from e


class IngestionAccepted(BaseModel):
    """Response for a queued ingestion run."""

    task_id: str
    repo_id: str
    status: str = "queued"
