"""Pydantic models for diffhelper API requests and responses."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class DecodeRequest(BaseModel):
    """Request model for decode endpoint."""

    lines: List[str] = Field(
        ...,
        description="Raw change lines without terminators",
        examples=[["+100644 blob 557db03de997c86a4a028e1ebd3a1ceb225be238 hello.txt"]],
    )


class TranslateRequest(BaseModel):
    """Request model for translate endpoint."""

    input: str = Field(
        ...,
        description="Raw change stream, records separated by the terminator",
    )
    nul_terminated: bool = Field(
        False,
        description="Records are NUL-terminated instead of newline-terminated",
    )
    reverse: bool = Field(False, description="Swap the two sides of every change")
    rename_mode: Literal["off", "rename", "copy"] = Field(
        "off",
        description="Rename/copy detection mode",
    )
    score: int = Field(
        50,
        description="Minimum similarity percentage for rename/copy pairing",
        ge=0,
        le=100,
    )
    patch: bool = Field(
        False,
        description="Render patches instead of raw records",
    )
    pickaxe: Optional[str] = Field(
        None,
        description="Only keep changes that add or remove this string",
    )
    paths: List[str] = Field(
        default_factory=list,
        description="Path patterns restricting output",
    )

    @field_validator("pickaxe")
    @classmethod
    def pickaxe_must_not_be_empty(cls, v):
        """Reject an empty pickaxe string."""
        if v is not None and not v:
            raise ValueError("pickaxe cannot be empty")
        return v


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., examples=["healthy"])
    version: str = Field(..., examples=["1.0.0"])
    git_available: bool = Field(..., examples=[True])
    git_version: Optional[str] = Field(None, examples=["2.34.1"])


class VersionResponse(BaseModel):
    """Response model for version endpoint."""

    version: str = Field(..., examples=["1.0.0"])
    api_version: str = Field(..., examples=["v1"])
    git_version: Optional[str] = Field(None, examples=["2.34.1"])
    supported_features: list = Field(
        default_factory=lambda: [
            "raw_line_decoding",
            "passthrough",
            "rename_detection",
            "copy_detection",
            "pickaxe",
            "patch_output",
        ]
    )
