from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------- Document ----------
class DocumentBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    type: str
    content: str
    parent_id: Optional[int] = Field(default=None, alias="parentId")


class DocumentCreate(DocumentBase):
    pass


class DocumentUpdate(BaseModel):
    """Partial update; only the fields present in the request are applied."""
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    type: Optional[str] = None
    content: Optional[str] = None
    parent_id: Optional[int] = Field(default=None, alias="parentId")

    @field_validator("name", "type", "content")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


class Document(DocumentBase):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    created_at: datetime = Field(alias="createdAt")


# ---------- Chat relay ----------
class DocumentSnapshot(BaseModel):
    name: str
    content: str


class ProcessMessageRequest(BaseModel):
    message: Optional[str] = None
    documents: List[DocumentSnapshot] = []
