"""Tests for HttpxTransport."""

import time

import httpx
import pytest
import respx

from canvas_xhr._internal.http import USER_AGENT, build_timeout, create_http_client
from canvas_xhr._internal.transport import HttpxTransport
from canvas_xhr.exceptions import TransportError
from canvas_xhr.models.request import HttpMethod


def execute(transport, method, url, headers=None, body=b"", read_timeout=10.0):
    return transport.execute(method, url, headers or [], body, 5.0, read_timeout)


class SlowStream(httpx.SyncByteStream):
    """Body stream that waits before each chunk."""

    def __init__(self, chunks, delay):
        self._chunks = chunks
        self._delay = delay

    def __iter__(self):
        for chunk in self._chunks:
            time.sleep(self._delay)
            yield chunk


class TestHttpClientFactory:
    """Tests for the shared httpx client configuration."""

    def test_build_timeout(self):
        """Should map connect and read timeouts onto httpx.Timeout."""
        timeout = build_timeout(3.0, 7.0)
        assert timeout.connect == 3.0
        assert timeout.read == 7.0
        assert timeout.write == 7.0

    def test_client_sets_user_agent(self):
        """Should send the package user agent and not follow redirects."""
        with create_http_client() as client:
            assert client.headers["User-Agent"] == USER_AGENT
            assert client.follow_redirects is False


class TestHttpxTransportSuccess:
    """Tests for successful transfers."""

    @respx.mock
    def test_get_returns_body_and_status(self):
        """Should return the body bytes and status 200."""
        respx.get("http://test/data").mock(
            return_value=httpx.Response(200, content=b"payload", headers={"X-Id": "7"})
        )

        transport = HttpxTransport()
        result = execute(transport, HttpMethod.GET, "http://test/data")
        transport.close()

        assert result.status_code == 200
        assert result.body == b"payload"
        assert result.reason_phrase == "OK"
        assert ("x-id", "7") in result.headers

    @respx.mock
    def test_post_sends_body_and_headers(self):
        """Should send the request body and custom headers."""
        route = respx.post("http://test/scores").mock(return_value=httpx.Response(200))

        transport = HttpxTransport()
        execute(
            transport,
            HttpMethod.POST,
            "http://test/scores",
            headers=[("Content-Type", "application/json")],
            body=b'{"score":10}',
        )

        request = route.calls.last.request
        assert request.content == b'{"score":10}'
        assert request.headers["content-type"] == "application/json"

    @respx.mock
    def test_put_sends_body(self):
        """Should send the body with PUT."""
        route = respx.put("http://test/item").mock(return_value=httpx.Response(200))

        execute(HttpxTransport(), HttpMethod.PUT, "http://test/item", body=b"new")

        assert route.calls.last.request.content == b"new"

    @respx.mock
    def test_get_does_not_send_body(self):
        """Should ignore the body for GET."""
        route = respx.get("http://test/data").mock(return_value=httpx.Response(200))

        execute(HttpxTransport(), HttpMethod.GET, "http://test/data", body=b"ignored")

        assert route.calls.last.request.content == b""


class TestHttpxTransportRedirects:
    """Tests for redirect handling."""

    @respx.mock
    def test_get_follows_redirect(self):
        """Should follow redirects for GET."""
        respx.get("http://test/old").mock(
            return_value=httpx.Response(302, headers={"Location": "http://test/new"})
        )
        respx.get("http://test/new").mock(return_value=httpx.Response(200, content=b"moved"))

        result = execute(HttpxTransport(), HttpMethod.GET, "http://test/old")

        assert result.body == b"moved"

    @respx.mock
    def test_delete_keeps_method_on_see_other(self):
        """Should re-issue DELETE on the redirect target, even for 303."""
        respx.delete("http://test/old").mock(
            return_value=httpx.Response(303, headers={"Location": "http://test/new"})
        )
        route = respx.delete("http://test/new").mock(return_value=httpx.Response(200))

        execute(HttpxTransport(), HttpMethod.DELETE, "http://test/old")

        assert route.called
        assert route.calls.last.request.method == "DELETE"

    @respx.mock
    def test_post_does_not_follow_redirect(self):
        """Should report a redirect for POST as a failure with its status."""
        respx.post("http://test/old").mock(
            return_value=httpx.Response(302, headers={"Location": "http://test/new"})
        )
        route = respx.get("http://test/new").mock(return_value=httpx.Response(200))

        with pytest.raises(TransportError) as exc_info:
            execute(HttpxTransport(), HttpMethod.POST, "http://test/old", body=b"x")

        assert exc_info.value.status_code == 302
        assert not route.called

    @respx.mock
    def test_redirect_loop_fails(self):
        """Should give up after the maximum number of redirects."""
        route = respx.get("http://test/loop").mock(
            return_value=httpx.Response(302, headers={"Location": "http://test/loop"})
        )

        with pytest.raises(TransportError) as exc_info:
            execute(HttpxTransport(), HttpMethod.GET, "http://test/loop")

        assert "Maximum (20) redirects" in str(exc_info.value)
        assert route.call_count == 21

    @respx.mock
    def test_cross_host_redirect_drops_authorization(self):
        """Should not send credentials to another host."""
        respx.get("http://test/old").mock(
            return_value=httpx.Response(302, headers={"Location": "http://other/new"})
        )
        route = respx.get("http://other/new").mock(return_value=httpx.Response(200))

        execute(
            HttpxTransport(),
            HttpMethod.GET,
            "http://test/old",
            headers=[("Authorization", "Basic dXNlcjpwdw=="), ("X-Level", "3")],
        )

        request = route.calls.last.request
        assert "authorization" not in request.headers
        assert request.headers["x-level"] == "3"

    @respx.mock
    def test_same_host_redirect_keeps_authorization(self):
        """Should keep credentials when the redirect stays on the host."""
        respx.get("http://test/old").mock(
            return_value=httpx.Response(301, headers={"Location": "/new"})
        )
        route = respx.get("http://test/new").mock(return_value=httpx.Response(200))

        execute(
            HttpxTransport(),
            HttpMethod.GET,
            "http://test/old",
            headers=[("Authorization", "Basic dXNlcjpwdw==")],
        )

        assert route.calls.last.request.headers["authorization"] == "Basic dXNlcjpwdw=="


class TestHttpxTransportDeadline:
    """Tests for the whole-transfer deadline."""

    @respx.mock
    def test_slow_body_times_out(self):
        """Should fail once streaming the body outlasts the read timeout."""
        respx.get("http://test/drip").mock(
            return_value=httpx.Response(200, stream=SlowStream([b"a", b"b", b"c", b"d"], 0.1))
        )

        with pytest.raises(TransportError) as exc_info:
            execute(HttpxTransport(), HttpMethod.GET, "http://test/drip", read_timeout=0.2)

        assert exc_info.value.timed_out is True
        assert exc_info.value.status_code == -1
        assert "timed out after 0.2 seconds" in str(exc_info.value)

    @respx.mock
    def test_slow_redirect_chain_times_out(self):
        """Should count redirect hops against the deadline."""

        def slow_hop(request):
            time.sleep(0.1)
            hop = int(request.url.path.rsplit("/", 1)[-1])
            if hop == 5:
                return httpx.Response(200)
            return httpx.Response(302, headers={"Location": f"/hop/{hop + 1}"})

        route = respx.get(url__regex=r"http://test/hop/\d+").mock(side_effect=slow_hop)

        with pytest.raises(TransportError) as exc_info:
            execute(HttpxTransport(), HttpMethod.GET, "http://test/hop/0", read_timeout=0.25)

        assert exc_info.value.timed_out is True
        assert route.call_count < 6

    @respx.mock
    def test_slow_empty_response_times_out(self):
        """Should fail a response that arrives after the deadline, even without a body."""

        def late(request):
            time.sleep(0.3)
            return httpx.Response(200)

        respx.get("http://test/late").mock(side_effect=late)

        with pytest.raises(TransportError) as exc_info:
            execute(HttpxTransport(), HttpMethod.GET, "http://test/late", read_timeout=0.2)

        assert exc_info.value.timed_out is True

    @respx.mock
    def test_fast_transfer_within_deadline(self):
        """Should succeed when the body arrives in time."""
        respx.get("http://test/quick").mock(
            return_value=httpx.Response(200, stream=SlowStream([b"ok"], 0.0))
        )

        result = execute(HttpxTransport(), HttpMethod.GET, "http://test/quick", read_timeout=2.0)

        assert result.body == b"ok"


class TestHttpxTransportFailures:
    """Tests for failed transfers."""

    @respx.mock
    def test_non_200_status_fails(self):
        """Should raise with the status code for a non-200 response."""
        respx.get("http://test/missing").mock(return_value=httpx.Response(404))

        with pytest.raises(TransportError) as exc_info:
            execute(HttpxTransport(), HttpMethod.GET, "http://test/missing")

        assert exc_info.value.status_code == 404
        assert "404" in str(exc_info.value)
        assert exc_info.value.timed_out is False

    @respx.mock
    def test_created_status_fails(self):
        """Should treat any status other than 200 as a failure."""
        respx.post("http://test/items").mock(return_value=httpx.Response(201))

        with pytest.raises(TransportError) as exc_info:
            execute(HttpxTransport(), HttpMethod.POST, "http://test/items")

        assert exc_info.value.status_code == 201

    @respx.mock
    def test_connect_error(self):
        """Should raise a readable error without a status code."""
        respx.get("http://unreachable/").mock(
            side_effect=httpx.ConnectError("connection refused")
        )

        with pytest.raises(TransportError) as exc_info:
            execute(HttpxTransport(), HttpMethod.GET, "http://unreachable/")

        assert exc_info.value.status_code == -1
        assert "connection refused" in str(exc_info.value)

    @respx.mock
    def test_timeout(self):
        """Should flag timeouts."""
        respx.get("http://test/slow").mock(side_effect=httpx.ConnectTimeout("timed out"))

        with pytest.raises(TransportError) as exc_info:
            execute(HttpxTransport(), HttpMethod.GET, "http://test/slow")

        assert exc_info.value.timed_out is True
        assert exc_info.value.status_code == -1

    def test_missing_scheme(self):
        """Should fail for a URL without a scheme."""
        with pytest.raises(TransportError):
            execute(HttpxTransport(), HttpMethod.GET, "www.example.com")

    def test_unknown_method(self):
        """Should refuse UNKNOWN without touching the network."""
        with pytest.raises(TransportError):
            execute(HttpxTransport(), HttpMethod.UNKNOWN, "http://test/a")


class TestHttpxTransportClose:
    """Tests for HttpxTransport.close()."""

    def test_close_without_use(self):
        """Should be safe to close before any transfer."""
        transport = HttpxTransport()
        transport.close()
        transport.close()
