"""NerdGraph response decoding.

The envelope is parsed once, GraphQL errors are checked first, then the
``data`` payload is validated against the one shape expected for the
command that was issued.
"""

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from newrelic_apikeys.errors import GraphQLErrors, MalformedResponseError, UnexpectedShapeError
from newrelic_apikeys.logging_config import get_logger
from newrelic_apikeys.models import (
    ApiKeyRecord,
    Command,
    DecodedResult,
    DeleteResult,
    KeyList,
    KeyRecordResult,
)

logger = get_logger(__name__)


class _Shape(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MutationError(_Shape):
    message: str
    type: str | None = None


# query: data.actor.apiAccess.keys
class _ApiAccess(_Shape):
    keys: list[ApiKeyRecord]


class _Actor(_Shape):
    api_access: _ApiAccess


class QueryData(_Shape):
    actor: _Actor


# create: data.apiAccessCreateKeys
class _CreatePayload(_Shape):
    created_keys: list[ApiKeyRecord] | None = None
    errors: list[MutationError] | None = None


class CreateData(_Shape):
    api_access_create_keys: _CreatePayload


# update: data.apiAccessUpdateKeys
class _UpdatePayload(_Shape):
    updated_keys: list[ApiKeyRecord] | None = None
    errors: list[MutationError] | None = None


class UpdateData(_Shape):
    api_access_update_keys: _UpdatePayload


# delete: data.apiAccessDeleteKeys
class _DeletedKey(_Shape):
    id: str


class _DeletePayload(_Shape):
    deleted_keys: list[_DeletedKey] | None = None
    errors: list[MutationError] | None = None


class DeleteData(_Shape):
    api_access_delete_keys: _DeletePayload


def _error_message(error: Any) -> str:
    if isinstance(error, dict) and "message" in error:
        return str(error["message"])
    return json.dumps(error)


def parse_envelope(raw_body: str) -> dict[str, Any]:
    """Parse the JSON envelope and raise on top-level GraphQL errors.

    Returns the ``data`` object.
    """
    try:
        envelope = json.loads(raw_body)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Response is not valid JSON: {e}") from e

    if not isinstance(envelope, dict):
        raise UnexpectedShapeError(
            f"Expected a JSON object envelope, got {type(envelope).__name__}"
        )

    errors = envelope.get("errors")
    if errors:
        if not isinstance(errors, list):
            errors = [errors]
        messages = [_error_message(err) for err in errors]
        logger.debug("nerdgraph_graphql_errors", messages=messages)
        raise GraphQLErrors(messages)

    data = envelope.get("data")
    if not isinstance(data, dict):
        raise UnexpectedShapeError("Response has no 'data' object")
    return data


def _validate(shape: type[_Shape], data: dict[str, Any]) -> Any:
    try:
        return shape.model_validate(data)
    except PydanticValidationError as e:
        locations = ", ".join(
            "data." + ".".join(str(x) for x in err["loc"]) + f" ({err['msg']})"
            for err in e.errors()
        )
        raise UnexpectedShapeError(f"Unexpected response shape: {locations}") from e


def _raise_mutation_errors(errors: list[MutationError] | None) -> None:
    if errors:
        raise GraphQLErrors([err.message for err in errors])


def _single(records: list[ApiKeyRecord] | None, field: str) -> ApiKeyRecord:
    if not records:
        raise UnexpectedShapeError(f"Response contains no {field}")
    return records[0]


def decode_query(data: dict[str, Any]) -> KeyList:
    shape: QueryData = _validate(QueryData, data)
    return KeyList(keys=shape.actor.api_access.keys)


def decode_create(data: dict[str, Any]) -> KeyRecordResult:
    payload = _validate(CreateData, data).api_access_create_keys
    _raise_mutation_errors(payload.errors)
    return KeyRecordResult(
        command=Command.CREATE, key=_single(payload.created_keys, "createdKeys")
    )


def decode_update(data: dict[str, Any]) -> KeyRecordResult:
    payload = _validate(UpdateData, data).api_access_update_keys
    _raise_mutation_errors(payload.errors)
    return KeyRecordResult(
        command=Command.UPDATE, key=_single(payload.updated_keys, "updatedKeys")
    )


def decode_delete(data: dict[str, Any]) -> DeleteResult:
    payload = _validate(DeleteData, data).api_access_delete_keys
    _raise_mutation_errors(payload.errors)
    if payload.deleted_keys is None:
        raise UnexpectedShapeError("Response contains no deletedKeys")
    return DeleteResult(deleted_ids=[k.id for k in payload.deleted_keys])


_DECODERS = {
    Command.QUERY: decode_query,
    Command.CREATE: decode_create,
    Command.UPDATE: decode_update,
    Command.DELETE: decode_delete,
}


def decode(command: Command | str, raw_body: str) -> DecodedResult:
    """Decode a raw NerdGraph response for the given command.

    Raises:
        MalformedResponseError: Body is not JSON.
        GraphQLErrors: Top-level or mutation-level errors were returned.
            Top-level errors win over any partial data.
        UnexpectedShapeError: Expected fields are missing or mistyped.
    """
    data = parse_envelope(raw_body)
    return _DECODERS[Command(command)](data)
