"""Pydantic models for API key inputs and NerdGraph results."""

from enum import Enum
import re
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

KEY_TYPE_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")
KEY_ID_PATTERN = r"^[A-Za-z0-9_.-]+$"


class Command(str, Enum):
    """Subcommands, one remote operation each."""

    QUERY = "query"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class OutputFormat(str, Enum):
    JSON = "json"
    TABLE = "table"


def normalize_key_type(value: str) -> str:
    """Upper-case a key type and check its syntax.

    Key types are an open set on the server side (USER, INGEST, BROWSER,
    MOBILE, ...), so only the shape is enforced here.
    """
    normalized = value.strip().upper()
    if not KEY_TYPE_PATTERN.match(normalized):
        raise ValueError(f"Invalid key type: {value!r}")
    return normalized


# === Inputs ===


class QueryFilter(BaseModel):
    """Optional filters for listing keys. No filter means every visible key."""

    model_config = ConfigDict(frozen=True)

    account_id: int | None = Field(default=None, gt=0, description="Account ID")
    key_type: str | None = Field(
        default=None, description="Key type", examples=["USER", "INGEST"]
    )
    key_id: str | None = Field(default=None, pattern=KEY_ID_PATTERN, description="Key ID")

    @field_validator("key_type")
    @classmethod
    def validate_key_type(cls, v: str | None) -> str | None:
        return normalize_key_type(v) if v is not None else None


class KeyCreate(BaseModel):
    """Model for key creation. Notes are optional."""

    model_config = ConfigDict(frozen=True)

    account_id: int = Field(..., gt=0, description="Account ID", examples=[123456])
    key_type: str = Field(..., description="Key type", examples=["USER", "INGEST"])
    name: str = Field(..., min_length=1, max_length=255, description="Key name")
    notes: str | None = Field(default=None, description="Free text notes")

    @field_validator("key_type")
    @classmethod
    def validate_key_type(cls, v: str) -> str:
        return normalize_key_type(v)


class KeyUpdate(BaseModel):
    """Model for key updates.

    At least one of name/notes must be given: an update with nothing to
    change is a caller error.
    """

    model_config = ConfigDict(frozen=True)

    key_id: str = Field(..., pattern=KEY_ID_PATTERN, description="Key ID")
    name: str | None = Field(default=None, min_length=1, max_length=255)
    notes: str | None = None

    @model_validator(mode="after")
    def require_change(self) -> "KeyUpdate":
        if self.name is None and self.notes is None:
            raise ValueError("at least one of name or notes must be provided")
        return self


class KeyDelete(BaseModel):
    model_config = ConfigDict(frozen=True)

    key_id: str = Field(..., pattern=KEY_ID_PATTERN, description="Key ID")


# === Results ===


class ApiKeyRecord(BaseModel):
    """One API key as returned by NerdGraph.

    Only ``id`` is guaranteed; the selection differs per operation and the
    secret ``key`` is only returned by create and query.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str | None = None
    key_type: str | None = Field(default=None, alias="type")
    notes: str | None = None
    account_id: int | None = None
    key: str | None = None


class KeyList(BaseModel):
    command: Literal[Command.QUERY] = Command.QUERY
    keys: list[ApiKeyRecord]


class KeyRecordResult(BaseModel):
    command: Literal[Command.CREATE, Command.UPDATE]
    key: ApiKeyRecord


class DeleteResult(BaseModel):
    command: Literal[Command.DELETE] = Command.DELETE
    deleted_ids: list[str]

    @property
    def deleted(self) -> bool:
        return bool(self.deleted_ids)


DecodedResult = KeyList | KeyRecordResult | DeleteResult
