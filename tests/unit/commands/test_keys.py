"""CLI tests with a mocked NerdGraph endpoint."""

import json

import httpx
import pytest
import respx
from typer.testing import CliRunner

from newrelic_apikeys.main import app

runner = CliRunner()

QUERY_RESPONSE = {"data": {"actor": {"apiAccess": {"keys": [{"id": "k1", "name": "Demo"}]}}}}
DELETE_RESPONSE = {"data": {"apiAccessDeleteKeys": {"deletedKeys": [{"id": "abc"}], "errors": []}}}
ERROR_RESPONSE = {"errors": [{"message": "Key not found"}]}


@pytest.fixture
def nerdgraph():
    """Respx mock for the default NerdGraph endpoint."""
    with respx.mock(base_url="https://api.newrelic.com", assert_all_called=False) as respx_mock:
        yield respx_mock


def sent_body(route) -> dict:
    return json.loads(route.calls.last.request.content)


class TestQuery:
    def test_query_by_account(self, nerdgraph):
        """query --account-id prints the single returned record."""
        route = nerdgraph.post("/graphql").mock(
            return_value=httpx.Response(httpx.codes.OK, json=QUERY_RESPONSE)
        )

        result = runner.invoke(app, ["--api-key", "NRAK-TEST", "query", "--account-id", "123456"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data == [{"id": "k1", "name": "Demo"}]

        body = sent_body(route)
        assert body["variables"] == {"accountId": 123456}
        assert route.calls.last.request.headers["API-Key"] == "NRAK-TEST"

    def test_query_table(self, nerdgraph):
        nerdgraph.post("/graphql").mock(
            return_value=httpx.Response(httpx.codes.OK, json=QUERY_RESPONSE)
        )

        result = runner.invoke(app, ["-a", "NRAK-TEST", "-f", "table", "query"])

        assert result.exit_code == 0, result.output
        assert "k1" in result.output
        assert "Demo" in result.output

    def test_credential_from_env(self, nerdgraph, monkeypatch):
        monkeypatch.setenv("NEW_RELIC_API_KEY", "NRAK-ENV")
        route = nerdgraph.post("/graphql").mock(
            return_value=httpx.Response(httpx.codes.OK, json=QUERY_RESPONSE)
        )

        result = runner.invoke(app, ["query", "--key-type", "user", "--key-id", "k1"])

        assert result.exit_code == 0, result.output
        assert route.calls.last.request.headers["API-Key"] == "NRAK-ENV"
        assert sent_body(route)["variables"] == {"keyType": "USER", "keyId": "k1"}

    def test_custom_endpoint(self):
        with respx.mock(base_url="https://api.eu.newrelic.com") as respx_mock:
            route = respx_mock.post("/graphql").mock(
                return_value=httpx.Response(httpx.codes.OK, json=QUERY_RESPONSE)
            )

            result = runner.invoke(
                app,
                ["-a", "NRAK-TEST", "-e", "https://api.eu.newrelic.com/graphql", "query"],
            )

        assert result.exit_code == 0, result.output
        assert route.called

    def test_missing_credential(self, nerdgraph):
        """Without any credential no request is made and the exit code is non-zero."""
        route = nerdgraph.post("/graphql")

        result = runner.invoke(app, ["query"])

        assert result.exit_code != 0
        assert "No API key provided" in result.output
        assert not route.called

    def test_generic_api_key_env_not_used(self, nerdgraph, monkeypatch):
        """API_KEY set by another tool is not a New Relic credential."""
        monkeypatch.setenv("API_KEY", "leaked")
        route = nerdgraph.post("/graphql")

        result = runner.invoke(app, ["query"])

        assert result.exit_code != 0
        assert "No API key provided" in result.output
        assert not route.called

    def test_timeout_reported_once(self, nerdgraph):
        """A transport failure is printed by the CLI only, not logged as well."""
        nerdgraph.post("/graphql").mock(side_effect=httpx.ConnectTimeout("connect timeout"))

        result = runner.invoke(app, ["-a", "NRAK-TEST", "query"])

        assert result.exit_code == 1
        assert result.output.count("Error:") == 1
        assert "connect timeout" in result.output
        assert "nerdgraph_timeout" not in result.output


class TestCreate:
    def test_create(self, nerdgraph):
        route = nerdgraph.post("/graphql").mock(
            return_value=httpx.Response(
                httpx.codes.OK,
                json={
                    "data": {
                        "apiAccessCreateKeys": {
                            "createdKeys": [
                                {
                                    "id": "NEW1",
                                    "name": "Demo Key",
                                    "type": "USER",
                                    "key": "NRAK-NEW",
                                    "notes": "Created by CLI demo",
                                }
                            ],
                            "errors": [],
                        }
                    }
                },
            )
        )

        result = runner.invoke(
            app,
            [
                "-a",
                "NRAK-TEST",
                "create",
                "--account-id",
                "123456",
                "--key-type",
                "USER",
                "--name",
                "Demo Key",
                "--notes",
                "Created by CLI demo",
            ],
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["id"] == "NEW1"
        assert data["key"] == "NRAK-NEW"
        assert sent_body(route)["variables"] == {
            "accountId": 123456,
            "keyType": "USER",
            "name": "Demo Key",
            "notes": "Created by CLI demo",
        }

    def test_create_missing_account_id(self, nerdgraph):
        route = nerdgraph.post("/graphql")

        result = runner.invoke(app, ["-a", "NRAK-TEST", "create", "-k", "USER", "-n", "Demo"])

        assert result.exit_code == 1
        assert "account_id" in result.output
        assert not route.called


class TestUpdate:
    def test_update_name(self, nerdgraph):
        route = nerdgraph.post("/graphql").mock(
            return_value=httpx.Response(
                httpx.codes.OK,
                json={
                    "data": {
                        "apiAccessUpdateKeys": {
                            "updatedKeys": [{"id": "K1", "name": "Renamed"}],
                            "errors": [],
                        }
                    }
                },
            )
        )

        result = runner.invoke(app, ["-a", "NRAK-TEST", "update", "-i", "K1", "-n", "Renamed"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output)["name"] == "Renamed"
        assert sent_body(route)["variables"] == {"keyId": "K1", "name": "Renamed"}

    def test_update_nothing_to_change(self, nerdgraph):
        """update without --name or --notes fails locally."""
        route = nerdgraph.post("/graphql")

        result = runner.invoke(app, ["-a", "NRAK-TEST", "update", "--key-id", "K1"])

        assert result.exit_code == 1
        assert "at least one of name or notes" in result.output
        assert not route.called


class TestDelete:
    def test_delete_success(self, nerdgraph):
        route = nerdgraph.post("/graphql").mock(
            return_value=httpx.Response(httpx.codes.OK, json=DELETE_RESPONSE)
        )

        result = runner.invoke(app, ["-a", "NRAK-TEST", "delete", "--key-id", "abc"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"deleted": True, "ids": ["abc"]}
        assert sent_body(route)["variables"] == {"keyId": "abc"}

    def test_delete_success_table(self, nerdgraph):
        nerdgraph.post("/graphql").mock(
            return_value=httpx.Response(httpx.codes.OK, json=DELETE_RESPONSE)
        )

        result = runner.invoke(app, ["-a", "NRAK-TEST", "-f", "table", "delete", "-i", "abc"])

        assert result.exit_code == 0, result.output
        assert "API key deleted" in result.output

    def test_delete_graphql_error(self, nerdgraph):
        nerdgraph.post("/graphql").mock(
            return_value=httpx.Response(httpx.codes.OK, json=ERROR_RESPONSE)
        )

        result = runner.invoke(app, ["-a", "NRAK-TEST", "delete", "--key-id", "abc"])

        assert result.exit_code != 0
        assert "Key not found" in result.output

    def test_delete_http_error(self, nerdgraph):
        nerdgraph.post("/graphql").mock(
            return_value=httpx.Response(httpx.codes.FORBIDDEN, text="Forbidden")
        )

        result = runner.invoke(app, ["-a", "NRAK-TEST", "delete", "--key-id", "abc"])

        assert result.exit_code == 1
        assert "HTTP 403" in result.output
        assert "Forbidden" in result.output


    def test_delete_help_states_ingest_only(self):
        result = runner.invoke(app, ["delete", "--help"])

        assert result.exit_code == 0
        assert "Only INGEST keys are supported" in result.output


class TestGlobalOptions:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "newrelic-apikeys" in result.output

    def test_invalid_format(self):
        result = runner.invoke(app, ["-a", "NRAK-TEST", "-f", "xml", "query"])
        assert result.exit_code != 0

    def test_verbose_logs_request_without_secret(self, nerdgraph):
        nerdgraph.post("/graphql").mock(
            return_value=httpx.Response(httpx.codes.OK, json=QUERY_RESPONSE)
        )

        result = runner.invoke(app, ["-a", "NRAK-SECRET", "-v", "query"])

        assert result.exit_code == 0, result.output
        assert "nerdgraph_request" in result.output
        assert "nerdgraph_response" in result.output
        assert "NRAK-SECRET" not in result.output
