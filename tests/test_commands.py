"""
Tests for the mon-cli command line interface.
"""

import logging

import click
import httpx
import pytest
from click.testing import CliRunner

from mondrian_cli.commands import CliState, cli, main
from mondrian_cli.errors import ConfigurationError, ValidationError
from mondrian_cli.logging import get_logger

BASE_URL = "http://localhost:5000"

CUBE = {
    "name": "Sales",
    "dimensions": [{
        "name": "Year",
        "hierarchies": [{"name": "Year", "levels": [
            {"name": "(All)", "full_name": "[Year].[Year].[(All)]"},
            {"name": "Year", "full_name": "[Year].[Year].[Year]", "properties": ["Days"]},
        ]}],
    }],
    "measures": [{"name": "Quantity", "aggregator": "sum"}],
}


class Server:
    """Mock server routing by path."""

    def __init__(self, routes=None, status=200):
        self.routes = routes or {}
        self.status = status
        self.urls = []

    def __call__(self, request):
        self.urls.append(str(request.url))
        path = request.url.path
        if path in self.routes:
            return httpx.Response(self.status, json=self.routes[path])
        if path.endswith("/aggregate.json"):
            return httpx.Response(self.status, json={"cells": []})
        if path == "/flush":
            return httpx.Response(self.status, text="true")
        return httpx.Response(404, json={"error": [f"no route {path}"]})


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in ("MON_CLI_BASE_URL", "MON_CLI_SECRET", "MON_CLI_TIMEOUT",
                 "MON_CLI_ERROR_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    yield
    # -v switches the shared logger to debug
    get_logger().setLevel(logging.NOTSET)


def invoke(server, *args):
    state = CliState(transport=httpx.MockTransport(server))
    return CliRunner().invoke(cli, ["-b", BASE_URL, *args], obj=state)


class TestDescribe:
    def test_catalog(self):
        server = Server({"/cubes/": {"cubes": [CUBE]}})
        result = invoke(server, "describe")

        assert result.exit_code == 0, result.output
        assert "Cube: Sales" in result.output
        assert "    [Year].[Year].[Year]" in result.output
        assert "    Quantity | agg: sum" in result.output
        assert server.urls == ["http://localhost:5000/cubes/"]

    def test_cube_alias(self):
        server = Server({"/cubes/Sales/": CUBE})
        result = invoke(server, "d", "Sales")

        assert result.exit_code == 0, result.output
        assert result.output.startswith("Cube: Sales\n")

    def test_raw(self):
        server = Server({"/cubes/Sales/": CUBE})
        result = invoke(server, "describe", "Sales", "--raw")

        assert result.exit_code == 0, result.output
        assert '"name":"Sales"' in result.output.replace(" ", "")

    def test_members(self):
        path = "/cubes/Sales/dimensions/Year/hierarchies/Year/levels/Year/members"
        server = Server({path: {"name": "Year", "members": [
            {"name": "2016", "key": 2016},
            {"name": "2017", "key": 2017},
        ]}})
        result = invoke(server, "describe", "Sales", "-m", "Year.Year")

        assert result.exit_code == 0, result.output
        assert result.output == "Members of Level Year:\n&2016: 2016\n&2017: 2017\n"

    def test_members_needs_cube(self):
        server = Server()
        result = invoke(server, "describe", "-m", "Year.Year")

        assert result.exit_code == 2
        assert server.urls == []

    def test_verbose_prints_url(self):
        server = Server({"/cubes/Sales/": CUBE})
        result = invoke(server, "-v", "describe", "Sales")

        assert "http://localhost:5000/cubes/Sales/" in result.output


class TestQuery:
    def test_query(self):
        server = Server()
        result = invoke(server, "q", "Sales", "-d", "Year.Year", "-m", "Quantity",
                        "-c", "Year.Year.2016,2017", "--nonempty")

        assert result.exit_code == 0, result.output
        assert '"cells"' in result.output
        url = httpx.URL(server.urls[0])
        assert url.path == "/cubes/Sales/aggregate.json"
        assert url.params.get_list("drilldown[]") == ["[Year].[Year].[Year]"]
        assert url.params["nonempty"] == "true"
        assert url.params["debug"] == "false"

    def test_format(self):
        server = Server()
        invoke(server, "query", "Sales", "-d", "Year.Year", "-m", "Quantity",
               "-f", "csv")
        assert httpx.URL(server.urls[0]).path == "/cubes/Sales/aggregate.csv"

    @pytest.mark.parametrize(
        "args",
        [
            ["Sales", "-m", "Quantity"],
            ["Sales", "-d", "Year.Year"],
        ],
    )
    def test_drilldown_and_measure_required(self, args):
        server = Server()
        result = invoke(server, "query", *args)

        assert result.exit_code == 2
        assert "Dimension and measure must be supplied" in result.output
        assert server.urls == []

    def test_server_error(self):
        server = Server(status=500)
        result = invoke(server, "query", "Sales", "-d", "Year.Year", "-m", "Quantity")

        assert result.exit_code == 1


class TestTest:
    def test_passed(self):
        server = Server({"/cubes/Sales/": CUBE})
        result = invoke(server, "test", "Sales")

        assert result.exit_code == 0, result.output
        assert "Test Cube: Sales" in result.output
        assert "tested 1 of 1 cubes" in result.output
        assert "test passed" in result.output
        # Drilldown query and property query
        assert len([u for u in server.urls if "aggregate" in u]) == 2

    def test_failed(self):
        server = Server({"/cubes/": {"cubes": [CUBE, dict(CUBE, name="Returns")]}},
                        status=200)

        def failing(request):
            if "aggregate" in request.url.path:
                return httpx.Response(500, json={"error": ["Mondrian Error: no cube"]})
            return server(request)

        state = CliState(transport=httpx.MockTransport(failing))
        result = CliRunner().invoke(cli, ["-b", BASE_URL, "t"], obj=state)

        assert result.exit_code == 1
        assert "tested 1 of 2 cubes" in result.output
        assert "2 ERRORS:" in result.output
        assert "Mondrian Error: no cube" in result.output

    def test_blank_cube_name(self):
        server = Server()
        result = invoke(server, "test", " ")

        assert isinstance(result.exception, ValidationError)
        assert server.urls == []


class TestFlush:
    def test_flush(self):
        server = Server()
        result = invoke(server, "f", "s3cr3t")

        assert result.exit_code == 0, result.output
        assert "flushed" in result.output
        assert server.urls == ["http://localhost:5000/flush?secret=s3cr3t"]

    def test_secret_from_environment(self, monkeypatch):
        monkeypatch.setenv("MON_CLI_SECRET", "from-env")
        server = Server()
        result = invoke(server, "flush")

        assert result.exit_code == 0, result.output
        assert server.urls == ["http://localhost:5000/flush?secret=from-env"]

    def test_verbose_masks_secret(self):
        server = Server()
        result = invoke(server, "-v", "flush", "s3cr3t")

        assert "flush?secret=****" in result.output
        assert "s3cr3t" not in result.output

    def test_missing_secret(self):
        server = Server()
        result = invoke(server, "flush")

        assert isinstance(result.exception, ConfigurationError)
        assert server.urls == []


class TestMain:
    def test_missing_base_url(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["describe"], obj=CliState(), prog_name="mon-cli")

        assert excinfo.value.code == 1
        assert "Error: Base url must be supplied" in capsys.readouterr().err

    def test_error_debug_reraises(self, monkeypatch):
        monkeypatch.setenv("MON_CLI_ERROR_DEBUG", "1")
        with pytest.raises(ConfigurationError):
            main(["describe"], obj=CliState(), prog_name="mon-cli")

    def test_base_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("MON_CLI_BASE_URL", BASE_URL)
        server = Server({"/cubes/": {"cubes": []}})
        state = CliState(transport=httpx.MockTransport(server))
        result = CliRunner().invoke(cli, ["describe"], obj=state)

        assert result.exit_code == 0, result.output
        assert server.urls == ["http://localhost:5000/cubes/"]

    def test_blank_cube_name_reported(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["-b", BASE_URL, "test", " "], obj=CliState(), prog_name="mon-cli")

        assert excinfo.value.code == 1
        assert "Error: Invalid cube" in capsys.readouterr().err

    def test_malformed_setting_reported(self, monkeypatch, capsys):
        monkeypatch.setenv("MON_CLI_TIMEOUT", "abc")
        with pytest.raises(SystemExit) as excinfo:
            main(["-b", BASE_URL, "describe"], obj=CliState(), prog_name="mon-cli")

        assert excinfo.value.code == 1
        assert "Error: Invalid setting timeout" in capsys.readouterr().err

    def test_malformed_setting(self, monkeypatch):
        monkeypatch.setenv("MON_CLI_TIMEOUT", "abc")
        result = CliRunner().invoke(cli, ["-b", BASE_URL, "describe"], obj=CliState())

        assert isinstance(result.exception, ConfigurationError)
        assert result.exception.context == {"setting": "timeout"}


class TestAliases:
    def test_alias_resolves_to_command(self):
        ctx = click.Context(cli)
        name, command, args = cli.resolve_command(ctx, ["d", "Sales"])

        assert name == "describe"
        assert command is cli.commands["describe"]
        assert args == ["Sales"]

    def test_unknown_command_while_completing(self):
        ctx = click.Context(cli, resilient_parsing=True)

        assert cli.resolve_command(ctx, ["nope"]) == (None, None, [])
