"""GraphQL operation builder.

Each command maps to exactly one NerdGraph query or mutation. Optional
inputs that were not supplied are left out of the document entirely, both
from the variable definitions and from the argument list, instead of being
sent as null.
"""

from collections.abc import Mapping
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from newrelic_apikeys.errors import ValidationError
from newrelic_apikeys.models import Command, KeyCreate, KeyDelete, KeyUpdate, QueryFilter

RECORD_SELECTION = "id name type notes accountId key"
UPDATED_SELECTION = "id name type notes accountId"
ERRORS_SELECTION = "errors { message type }"

INPUT_MODELS: dict[Command, type[BaseModel]] = {
    Command.QUERY: QueryFilter,
    Command.CREATE: KeyCreate,
    Command.UPDATE: KeyUpdate,
    Command.DELETE: KeyDelete,
}


class OperationDocument(BaseModel):
    """A GraphQL document plus its variable bindings."""

    model_config = ConfigDict(frozen=True)

    command: Command
    query: str
    variables: dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """JSON body for the HTTP POST."""
        return {"query": self.query, "variables": dict(self.variables)}


class _Binding(NamedTuple):
    argument: str
    variable: str
    graphql_type: str
    value: Any


def _variable_definitions(bindings: list[_Binding]) -> str:
    if not bindings:
        return ""
    return "(" + ", ".join(f"${b.variable}: {b.graphql_type}" for b in bindings) + ")"


def _arguments(bindings: list[_Binding]) -> str:
    return ", ".join(f"{b.argument}: ${b.variable}" for b in bindings)


def _variables(bindings: list[_Binding]) -> dict[str, Any]:
    return {b.variable: b.value for b in bindings}


def build_query(query_filter: QueryFilter) -> OperationDocument:
    bindings: list[_Binding] = []
    if query_filter.account_id is not None:
        bindings.append(_Binding("accountId", "accountId", "Int!", query_filter.account_id))
    if query_filter.key_type is not None:
        bindings.append(_Binding("keyType", "keyType", "ApiAccessKeyType!", query_filter.key_type))
    if query_filter.key_id is not None:
        bindings.append(_Binding("id", "keyId", "ID!", query_filter.key_id))

    arguments = f"({_arguments(bindings)})" if bindings else ""
    query = (
        f"query{_variable_definitions(bindings)} {{\n"
        "  actor {\n"
        "    apiAccess {\n"
        f"      keys{arguments} {{ {RECORD_SELECTION} }}\n"
        "    }\n"
        "  }\n"
        "}"
    )
    return OperationDocument(command=Command.QUERY, query=query, variables=_variables(bindings))


def build_create(key: KeyCreate) -> OperationDocument:
    bindings = [
        _Binding("accountId", "accountId", "Int!", key.account_id),
        _Binding("keyType", "keyType", "ApiAccessKeyType!", key.key_type),
        _Binding("name", "name", "String!", key.name),
    ]
    if key.notes is not None:
        bindings.append(_Binding("notes", "notes", "String!", key.notes))

    query = (
        f"mutation{_variable_definitions(bindings)} {{\n"
        f"  apiAccessCreateKeys(keys: [{{{_arguments(bindings)}}}]) {{\n"
        f"    createdKeys {{ {RECORD_SELECTION} }}\n"
        f"    {ERRORS_SELECTION}\n"
        "  }\n"
        "}"
    )
    return OperationDocument(command=Command.CREATE, query=query, variables=_variables(bindings))


def build_update(update: KeyUpdate) -> OperationDocument:
    bindings = [_Binding("id", "keyId", "ID!", update.key_id)]
    if update.name is not None:
        bindings.append(_Binding("name", "name", "String!", update.name))
    if update.notes is not None:
        bindings.append(_Binding("notes", "notes", "String!", update.notes))

    query = (
        f"mutation{_variable_definitions(bindings)} {{\n"
        f"  apiAccessUpdateKeys(keys: [{{{_arguments(bindings)}}}]) {{\n"
        f"    updatedKeys {{ {UPDATED_SELECTION} }}\n"
        f"    {ERRORS_SELECTION}\n"
        "  }\n"
        "}"
    )
    return OperationDocument(command=Command.UPDATE, query=query, variables=_variables(bindings))


def build_delete(delete: KeyDelete) -> OperationDocument:
    binding = _Binding("ingestKeyIds", "keyId", "ID!", delete.key_id)
    query = (
        f"mutation{_variable_definitions([binding])} {{\n"
        f"  apiAccessDeleteKeys(keys: {{ingestKeyIds: [${binding.variable}]}}) {{\n"
        "    deletedKeys { id }\n"
        f"    {ERRORS_SELECTION}\n"
        "  }\n"
        "}"
    )
    return OperationDocument(
        command=Command.DELETE, query=query, variables=_variables([binding])
    )


_BUILDERS = {
    Command.QUERY: build_query,
    Command.CREATE: build_create,
    Command.UPDATE: build_update,
    Command.DELETE: build_delete,
}


def validate_params(command: Command, params: Mapping[str, Any] | BaseModel) -> BaseModel:
    """Validate raw parameters against the command's input model.

    Raises:
        ValidationError: If a required field is missing or a value is malformed.
    """
    model_class = INPUT_MODELS[command]
    if isinstance(params, model_class):
        return params
    if isinstance(params, BaseModel):
        params = params.model_dump()
    data = {k: v for k, v in params.items() if v is not None}
    try:
        return model_class.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError.from_pydantic(e) from e


def build(command: Command | str, params: Mapping[str, Any] | BaseModel) -> OperationDocument:
    """Build the GraphQL document for a command.

    Args:
        command: One of query, create, update, delete.
        params: CLI keyword arguments or an already validated input model.

    Returns:
        The operation document ready to be sent.

    Raises:
        ValidationError: Unknown command or invalid parameters. Nothing has
            been sent when this is raised.
    """
    try:
        command = Command(command)
    except ValueError as e:
        raise ValidationError(f"Unknown command: {command}") from e

    validated = validate_params(command, params)
    return _BUILDERS[command](validated)
