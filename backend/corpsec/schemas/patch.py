"""Partial-update helper for PATCH endpoints."""
from pydantic import BaseModel
from sqlalchemy import inspect


def patch_values(update: BaseModel, model) -> dict:
    """
    Fields the client sent, minus explicit nulls for NOT NULL columns.
    
    Update schemas make every field optional, so a null on a required
    column means "leave unchanged" rather than "clear".
    """
    columns = inspect(model).columns
    return {
        field: value
        for field, value in update.model_dump(exclude_unset=True).items()
        if value is not None or (field in columns and columns[field].nullable)
    }
