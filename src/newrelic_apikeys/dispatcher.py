from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from newrelic_apikeys.client import NerdGraphClient
from newrelic_apikeys.config import GlobalOptions, Settings, resolve_config
from newrelic_apikeys.decoder import decode
from newrelic_apikeys.logging_config import get_logger
from newrelic_apikeys.models import Command, DecodedResult
from newrelic_apikeys.operations import build

logger = get_logger(__name__)


def dispatch(
    command: Command | str,
    params: Mapping[str, Any] | BaseModel,
    options: GlobalOptions | None = None,
    settings: Settings | None = None,
) -> DecodedResult:
    """Run one command: resolve config, build, send, decode.

    The first failing stage raises and nothing after it runs. In particular
    a missing credential or invalid input never reaches the network.
    """
    config = resolve_config(options, settings)
    document = build(command, params)

    logger.info(
        "command_dispatched",
        command=document.command.value,
        endpoint=config.endpoint,
    )

    with NerdGraphClient.from_config(config) as client:
        body = client.send(document)

    return decode(document.command, body)
