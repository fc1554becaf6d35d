"""Wire models for the module and source endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ModuleType = Literal["HEADER", "BODY", "FOOTER"]

MODULE_TYPES: tuple[ModuleType, ...] = ("HEADER", "BODY", "FOOTER")


class Module(BaseModel):
    """A binding between a slot and a source document. Owned by the backend."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    module_type: ModuleType = Field(alias="moduleType")
    source_id: int = Field(alias="sourceId")
    source_name: str = Field(default="", alias="sourceName")
    source_type: str = Field(default="HTML", alias="sourceType")
    source_file_path: str | None = Field(default=None, alias="sourceFilePath")
    position: int = 0
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")

    @field_validator("module_type", mode="before")
    @classmethod
    def _upper_module_type(cls, value: str) -> str:
        return value.upper() if isinstance(value, str) else value


class Source(BaseModel):
    """An uploaded document that can be assigned to a slot."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    name: str
    type: str
    file_path: str | None = Field(default=None, alias="filePath")
    created_at: str | None = Field(default=None, alias="createdAt")

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value: str) -> str:
        # Legacy uploads were typed 'pdf'; the API calls them 'doc'
        return "doc" if value == "pdf" else value

    @property
    def is_html(self) -> bool:
        return self.type == "HTML"


class ApiErrorDetail(BaseModel):
    code: str = "API_ERROR"
    message: str = ""


class ApiEnvelope(BaseModel):
    """
    Standard response wrapper.

    {"success": true, "data": ..., "error": null, "meta": {...}}
    {"success": false, "data": null, "error": {"code": ..., "message": ...}, "meta": {...}}
    """

    success: bool
    data: object | None = None
    error: ApiErrorDetail | None = None
    meta: dict[str, object] = Field(default_factory=dict)
