from enum import IntEnum
import time
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Each class name determines collection name (lowercased)


def _now() -> int:
    return int(time.time())


class Role(IntEnum):
    UNDEFINED = 0
    CLIENT = 1
    LIBRARIAN = 2
    ADMINISTRATOR = 3


# Promotion order; UNDEFINED is the floor
ROLE_LADDER = (Role.UNDEFINED, Role.CLIENT, Role.LIBRARIAN, Role.ADMINISTRATOR)


class Document(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls, doc: Optional[dict]):
        if doc is None:
            return None
        return cls.model_validate(doc)


class User(Document):
    id: str = Field(..., alias="_id", min_length=1, description="Unique user name")
    role: Role = Role.CLIENT
    password_hash: str = Field("", description="Hashed password")
    product_count: int = Field(0, ge=0)
    # Plaintext held only in memory, never persisted
    password: Optional[str] = Field(None, exclude=True, repr=False)

    def to_document(self) -> dict:
        doc = super().to_document()
        doc["role"] = int(self.role)
        return doc


class Product(Document):
    id: Optional[str] = Field(None, alias="_id", description="Reference code")
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    reserved_by: Optional[str] = None
    created_at: int = Field(default_factory=_now, description="Epoch seconds")


class ChatMessage(Document):
    id: Optional[str] = Field(None, alias="_id")
    chat_id: Optional[str] = None
    user: str
    client_name: str
    text: str = ""
    timestamp: int = Field(default_factory=_now, description="Epoch seconds")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_object_id(cls, value):
        if isinstance(value, ObjectId):
            return str(value)
        return value


class ProductReview(Document):
    product_id: str
    user: str
    score: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    created_at: int = Field(default_factory=_now)
