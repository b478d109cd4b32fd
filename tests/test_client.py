"""
Tests for the HTTP client and the extraction of server error messages.
"""

import json

import httpx
import pytest

from mondrian_cli.client import (
    Client,
    extract_remote_error,
    structured_error,
    unstructured_error,
)
from mondrian_cli.errors import TransportError, UrlConstructionError, ValidationError
from mondrian_cli.logging import mask_secret

BASE_URL = "http://localhost:5000"

CUBE = {
    "name": "Sales",
    "dimensions": [{
        "name": "Year",
        "hierarchies": [{"name": "Year", "levels": [
            {"name": "(All)", "full_name": "[Year].[Year].[(All)]"},
            {"name": "Year", "full_name": "[Year].[Year].[Year]"},
        ]}],
    }],
    "measures": [{"name": "Quantity", "aggregator": "sum"}],
}


@pytest.mark.parametrize(
    "body, expected",
    [
        ('{"error": ["Member not found", "details"]}', "Member not found"),
        ("java.lang.RuntimeException: boom\n\tat a.b.C\n\tat d.e.F", "java.lang.RuntimeException: boom\n\tat a.b.C"),
        ("Not Found", "Not Found"),
        ('{"message": "other"}', '{"message": "other"}'),
        ("", None),
        ("   \n  ", None),
    ],
)
def test_extract_remote_error(body, expected):
    assert extract_remote_error(body) == expected


def test_structured_error_needs_a_message():
    assert structured_error('{"error": []}') is None
    assert structured_error("not json") is None


def test_unstructured_error_first_two_lines():
    assert unstructured_error("one\ntwo\nthree") == "one\ntwo"


class Recorder:
    def __init__(self, response):
        self.response = response
        self.urls = []

    def __call__(self, request):
        self.urls.append(str(request.url))
        return self.response


def make_client(response):
    recorder = Recorder(response)
    return Client(BASE_URL + "/", transport=httpx.MockTransport(recorder)), recorder


class TestClient:
    def test_base_url_is_normalized(self):
        assert Client(BASE_URL).base_url == BASE_URL + "/"

    def test_invalid_base_url(self):
        with pytest.raises(UrlConstructionError):
            Client("localhost")

    def test_fetch_returns_body(self):
        client, recorder = make_client(httpx.Response(200, text="a,b\n1,2\n"))
        with client:
            assert client.fetch(BASE_URL + "/cubes/Sales/aggregate.csv") == "a,b\n1,2\n"
        assert recorder.urls == ["http://localhost:5000/cubes/Sales/aggregate.csv"]

    def test_structured_server_error(self):
        client, _ = make_client(httpx.Response(400, json={"error": ["Bad drilldown"]}))
        with pytest.raises(TransportError) as excinfo:
            client.fetch(BASE_URL + "/cubes/Sales/aggregate.json")

        error = excinfo.value
        assert error.status == 400
        assert error.message == "Server error 400: Bad drilldown"
        assert json.loads(error.body) == {"error": ["Bad drilldown"]}
        assert error.error_type == "transport_error"

    def test_empty_error_body_uses_reason(self):
        client, _ = make_client(httpx.Response(404))
        with pytest.raises(TransportError) as excinfo:
            client.fetch(BASE_URL + "/cubes/Nope/")
        assert excinfo.value.message == "Server error 404: Not Found"

    def test_connection_error(self):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        client = Client(BASE_URL, transport=httpx.MockTransport(refuse))
        with pytest.raises(TransportError) as excinfo:
            client.fetch(BASE_URL + "/cubes/")
        assert excinfo.value.status is None
        assert "Connection refused" in excinfo.value.message

    def test_cube(self):
        client, recorder = make_client(httpx.Response(200, json=CUBE))
        cube = client.cube("Sales")
        assert cube.measure_names() == ["Quantity"]
        assert recorder.urls == ["http://localhost:5000/cubes/Sales/"]

    def test_catalog(self):
        client, recorder = make_client(httpx.Response(200, json={"cubes": [CUBE]}))
        assert client.catalog().cube_names() == ["Sales"]
        assert recorder.urls == ["http://localhost:5000/cubes/"]

    def test_members(self):
        body = {"name": "Year", "members": [{"name": "2016", "key": 2016}]}
        client, recorder = make_client(httpx.Response(200, json=body))
        members = client.members("Sales", "Year.Year")
        assert [str(m) for m in members.members] == ["&2016: 2016"]
        assert recorder.urls == [
            "http://localhost:5000/cubes/Sales/dimensions/Year/hierarchies/Year/levels/Year/members"
        ]

    @pytest.mark.parametrize("name", ["", "  "])
    def test_blank_cube_name(self, name):
        client, recorder = make_client(httpx.Response(200, json=CUBE))
        with pytest.raises(ValidationError) as excinfo:
            client.cube(name)
        assert excinfo.value.field == "cube"
        assert recorder.urls == []

    def test_members_blank_cube_name(self):
        client, recorder = make_client(httpx.Response(200, json={"name": "State"}))
        with pytest.raises(ValidationError):
            client.members("", "Geography.State")
        assert recorder.urls == []

    def test_execute_builder(self):
        client, recorder = make_client(httpx.Response(200, text="ok"))
        builder = client.query().cube("Sales").drilldown("Year.Year").measure("Quantity")
        assert client.execute(builder) == "ok"
        assert recorder.urls[0].startswith("http://localhost:5000/cubes/Sales/aggregate.json?")


class TestFlush:
    def test_flush(self):
        client, recorder = make_client(httpx.Response(200, text="true"))
        client.flush("s3cr3t")
        assert recorder.urls == ["http://localhost:5000/flush?secret=s3cr3t"]

    def test_empty_secret(self):
        client, recorder = make_client(httpx.Response(200, text="true"))
        with pytest.raises(ValidationError) as excinfo:
            client.flush("")
        assert excinfo.value.field == "secret"
        assert recorder.urls == []

    def test_secret_is_masked_in_errors(self):
        client, _ = make_client(httpx.Response(403, text="Forbidden"))
        with pytest.raises(TransportError) as excinfo:
            client.flush("s3cr3t")
        assert "s3cr3t" not in str(excinfo.value)
        assert excinfo.value.url == "http://localhost:5000/flush?secret=****"

    def test_secret_is_masked_in_log(self, caplog):
        client, _ = make_client(httpx.Response(200, text="true"))
        logger = client.logger
        logger.addHandler(caplog.handler)
        logger.setLevel("DEBUG")
        try:
            client.flush("a&b")
        finally:
            logger.removeHandler(caplog.handler)
            logger.setLevel("NOTSET")
        assert "secret=****" in caplog.text
        assert "a%26b" not in caplog.text


@pytest.mark.parametrize(
    "text, secret, expected",
    [
        ("flush?secret=abc", "abc", "flush?secret=****"),
        ("flush?secret=a%26b", "a&b", "flush?secret=****"),
        ("flush?secret=abc", None, "flush?secret=abc"),
    ],
)
def test_mask_secret(text, secret, expected):
    assert mask_secret(text, secret) == expected
