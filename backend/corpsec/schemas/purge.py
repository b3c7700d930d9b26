"""Purge and restore schemas."""
from uuid import UUID
from pydantic import BaseModel


class PurgeRequest(BaseModel):
    entity_type: str
    entity_ids: list[UUID] = []
    reason: str | None = None


class RestoreRequest(BaseModel):
    entity_type: str
    entity_ids: list[UUID] = []


class PurgeResponse(BaseModel):
    success: bool
    message: str
    deleted_count: int
    failed_count: int
    deleted_records: list[dict]
    failed_records: list[dict]


class RestoreResponse(BaseModel):
    success: bool
    message: str
    restored_count: int
    restored_records: list[dict]
