"""
app_transfer/schema.py
-----------------------------------------------------------------------------
Pydantic v2 models for the Application Transfer Service.

Design principles
-----------------
• Keep models thin – no transfer logic here.
• Every field has a `description` so FastAPI's OpenAPI UI is immediately
  useful.
• File names inside a collection are unique; the collection validator
  enforces it so no caller can build an archive with clashing entries.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

# -----------------------------------------------------------------------------
# Definition files
# -----------------------------------------------------------------------------


class ExportFile(BaseModel):
    """
    One named script of an application definition.

    In single-document mode a collection holds exactly one of these (e.g.
    ``f101.sql``).  In archive mode there is one per component, and the name
    may carry a relative directory path (``f101/application/pages/p00001.sql``).
    """

    name: str = Field(
        ...,
        description="File name including its extension; may contain a relative path.",
        examples=["f101.sql", "f101/application/pages/page_00001.sql"],
    )
    contents: str = Field(
        ...,
        description="Script text.",
    )

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        """Reject blank names; an archive entry needs a name."""
        if not v.strip():
            raise ValueError("file name must not be empty or whitespace")
        return v


class FileCollection(BaseModel):
    """
    Ordered sequence of :class:`ExportFile` with unique names.

    Order is kept so archive layout is deterministic; import correctness
    does not depend on it.
    """

    files: list[ExportFile] = Field(
        default_factory=list,
        description="Definition files in export order.",
    )

    @field_validator("files")
    @classmethod
    def names_unique(cls, v: list[ExportFile]) -> list[ExportFile]:
        """Require unique file names."""
        seen: set[str] = set()
        for f in v:
            if f.name in seen:
                raise ValueError(f"duplicate file name '{f.name}'")
            seen.add(f.name)
        return v

    def names(self) -> list[str]:
        """Return the file names in collection order."""
        return [f.name for f in self.files]

    def single(self) -> ExportFile:
        """
        Return the only file of a single-document collection.

        Raises
        ------
        ValueError : If the collection does not hold exactly one file.
        """
        if len(self.files) != 1:
            raise ValueError(f"expected exactly one file, got {len(self.files)}")
        return self.files[0]


class TargetDescriptor(BaseModel):
    """Where an import or delete lands (both parts optional)."""

    application_id: int | None = Field(
        default=None,
        description="Application id to force; None keeps the id embedded in the definition.",
    )
    workspace: str | None = Field(
        default=None,
        description="Target workspace; None means the caller's first assigned workspace.",
    )


# -----------------------------------------------------------------------------
# HTTP response bodies
# -----------------------------------------------------------------------------


class ImportResponse(BaseModel):
    """Response body for POST /api/applications[/{application_id}]."""

    status: str = Field(default="installed", description="Always 'installed' on success.")
    application_id: int = Field(..., description="Id the application was installed under.")
    workspace: str = Field(..., description="Workspace the application was installed into.")
    mode: str = Field(..., description="'single_document' or 'archive'.")
    files: list[str] = Field(
        default_factory=list,
        description="Names of the files applied, in install order.",
    )


class DeleteResponse(BaseModel):
    """Response body for DELETE /api/applications/{application_id}."""

    status: str = Field(default="deleted", description="Always 'deleted' on success.")
    application_id: int = Field(..., description="Id of the removed application.")
    workspace: str = Field(..., description="Workspace the application was removed from.")


class HealthResponse(BaseModel):
    """Response body for GET /api/health."""

    status: str = Field(default="ok")
    version: str = Field(..., description="Service version from pyproject.toml.")
    store: str = Field(..., description="'http' or 'memory'.")
