"""Pydantic models for the JSON bodies returned by the document service."""

from typing import List
from pydantic import BaseModel, Field


class ContextInfoResponse(BaseModel):
    """Response model for the context-info (request digest) endpoint."""
    form_digest_value: str = Field(alias="FormDigestValue")


class FileAddResponse(BaseModel):
    """Response model for the files/add endpoint."""
    server_relative_url: str = Field(alias="ServerRelativeUrl")


class NamedEntry(BaseModel):
    """One file or folder entry of a listing."""
    name: str = Field(alias="Name")


class FileListResponse(BaseModel):
    """Response model for a folder's file collection."""
    value: List[NamedEntry]


class FolderExpandResponse(BaseModel):
    """Response model for a folder expanded with its sub-folders."""
    folders: List[NamedEntry] = Field(alias="Folders")
