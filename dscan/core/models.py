"""Data models for deprecation scanning."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class _Model(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class Position(_Model):
    """Zero-based location inside one file's text."""

    line: int = Field(ge=0)
    character: int = Field(ge=0)

    def as_tuple(self) -> tuple[int, int]:
        return self.line, self.character


class Range(_Model):
    """Span between two positions of the same file."""

    start: Position
    end: Position

    @model_validator(mode="after")
    def _check_order(self) -> Range:
        if self.end.as_tuple() < self.start.as_tuple():
            raise ValueError("range end precedes range start")
        return self


class Usage(_Model):
    """One occurrence of a deprecated reference."""

    file_path: str
    range: Range
    message: str
    source_package: str | None = Field(default=None, min_length=1)


class FileFindings(_Model):
    """Deprecated usages found in a single file."""

    file_path: str
    usages: list[Usage] = Field(min_length=1)


class ScanResult(_Model):
    """Aggregated result of one scan invocation."""

    files: list[FileFindings] = Field(default_factory=list)
    total_usages: int = Field(default=0, ge=0)
    scanned_files: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_total(self) -> ScanResult:
        counted = sum(len(file.usages) for file in self.files)
        if counted != self.total_usages:
            raise ValueError(
                f"totalUsages is {self.total_usages} but files hold {counted} usages"
            )
        return self


class MessageChain(_Model):
    """Multi-part diagnostic message."""

    message_text: str
    next: list[MessageChain] = Field(default_factory=list)


class RawDiagnostic(_Model):
    """A diagnostic as reported by the analysis engine.

    Engines report the location either as a ready ``range`` or as character
    offsets (``start``/``length``) into the document text.
    """

    code: int | str | None = None
    message: str | MessageChain
    start: int | None = Field(default=None, ge=0)
    length: int | None = Field(default=None, ge=0)
    range: Range | None = None
    tags: list[int] = Field(default_factory=list)


class Finding(_Model):
    """A deprecation extracted from one file, before origin resolution."""

    range: Range
    message: str
    definition_path: str | None = None


class ProjectConfig(_Model):
    """Resolved project configuration and the candidate files it names."""

    root_dir: Path
    config_path: Path | None = None
    compiler_options: dict[str, Any] = Field(default_factory=dict)
    file_names: list[str] = Field(default_factory=list)

    @field_validator("file_names")
    @classmethod
    def _sorted(cls, value: list[str]) -> list[str]:
        return sorted(value)

    @property
    def uses_default(self) -> bool:
        return self.config_path is None
