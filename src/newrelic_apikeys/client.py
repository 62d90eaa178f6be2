import httpx

from newrelic_apikeys import __version__
from newrelic_apikeys.config import DEFAULT_TIMEOUT, AppConfig
from newrelic_apikeys.errors import TransportError
from newrelic_apikeys.logging_config import get_logger
from newrelic_apikeys.operations import OperationDocument

logger = get_logger(__name__)

USER_AGENT = f"newrelic-apikeys-cli/{__version__}"


class NerdGraphClient:
    """Client for the NerdGraph GraphQL endpoint.

    Sends exactly one POST per call. There is no retry or backoff: network
    failures, timeouts and non-2xx statuses surface as TransportError.
    """

    def __init__(self, endpoint: str, api_key: str, timeout: float = DEFAULT_TIMEOUT):
        self.endpoint = endpoint
        self.client = httpx.Client(
            headers={
                "API-Key": api_key,
                "Content-Type": "application/json",
                "User-Agent": USER_AGENT,
            },
            timeout=timeout,
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> "NerdGraphClient":
        return cls(config.endpoint, config.api_key, timeout=config.timeout)

    def send(self, document: OperationDocument) -> str:
        """POST the document and return the raw response body.

        The body of a non-2xx response is never parsed as GraphQL.

        Raises:
            TransportError: On connection errors, timeouts or non-2xx status.
        """
        payload = document.to_payload()
        logger.debug(
            "nerdgraph_request",
            endpoint=self.endpoint,
            command=document.command.value,
            query=payload["query"],
            variables=payload["variables"],
            headers=dict(self.client.headers),
        )

        try:
            response = self.client.post(self.endpoint, json=payload)
        except httpx.TimeoutException as e:
            logger.debug("nerdgraph_timeout", endpoint=self.endpoint, error=str(e))
            raise TransportError(f"Request to {self.endpoint} timed out: {e}") from e
        except httpx.HTTPError as e:
            logger.debug("nerdgraph_request_failed", endpoint=self.endpoint, error=str(e))
            raise TransportError(f"Request to {self.endpoint} failed: {e}") from e

        logger.debug(
            "nerdgraph_response",
            status_code=response.status_code,
            body=response.text,
        )

        if not response.is_success:
            raise TransportError.from_status(response.status_code, response.text)

        return response.text

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "NerdGraphClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
