import pytest

from filog.core import transport as transport_mod
from filog.core.models import DispatchResult, LogPayload, TransportDescriptor
from filog.core.transport import AMQP, HTTP, dispatch, resolve_scheme, select_transport


def _t(client_id: str, log_type: str, url: str = "https://logs.example.test/api") -> TransportDescriptor:
    return TransportDescriptor(client_id=client_id, url=url, log_type=log_type)


def test_select_exact_level_before_wildcard():
    transports = [_t("any", "ANY"), _t("err", "ERROR"), _t("err2", "ERROR")]
    assert select_transport(transports, "ERROR").client_id == "err"


def test_select_falls_back_to_first_wildcard_case_insensitive():
    transports = [_t("info", "INFO"), _t("any-lower", "any"), _t("any-upper", "ANY")]
    assert select_transport(transports, "WARNING").client_id == "any-lower"


def test_select_returns_none_without_match():
    assert select_transport([_t("info", "INFO")], "WARNING") is None
    assert select_transport([], "ERROR") is None


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://x/y", HTTP),
        ("http://127.0.0.1:8080/logs", HTTP),
        ("amqp://x/y", AMQP),
        ("amqps://user:pw@mq.example.test:5671/%2F", AMQP),
        ("ftp://x/y", None),
        ("https://", None),
        ("", None),
    ],
)
def test_resolve_scheme(url, expected):
    assert resolve_scheme(url) == expected


def test_dispatch_http_uses_transport_credentials(monkeypatch):
    seen = {}

    def _send(self, payload):
        seen["target"] = self.target
        seen["headers"] = self.request_headers()
        return DispatchResult.success(self.target, 200)

    monkeypatch.setattr(transport_mod.HttpSender, "send", _send)
    res = dispatch(_t("svc-a", "ANY", url="https://x/y"), LogPayload(log_level="INFO", error_description="hi"))

    assert res.ok is True
    assert seen["target"] == "https://x/y"
    assert seen["headers"]["x-client-id"] == "svc-a"


def test_dispatch_amqp_uses_queue_publisher(monkeypatch):
    seen = {}

    def _publish(self, payload):
        seen["url"] = self.url
        seen["queue"] = self.queue
        return DispatchResult.success(self.url)

    monkeypatch.setattr(transport_mod.QueuePublisher, "publish", _publish)
    t = TransportDescriptor(client_id="a", url="amqp://x/y", log_type="ANY", queue="audit")
    res = dispatch(t, LogPayload(log_level="INFO", error_description="hi"))

    assert res.ok is True
    assert seen == {"url": "amqp://x/y", "queue": "audit"}


def test_dispatch_unsupported_scheme_makes_no_call(monkeypatch):
    def _fail(self, payload):
        raise AssertionError("no network call expected")

    monkeypatch.setattr(transport_mod.HttpSender, "send", _fail)
    monkeypatch.setattr(transport_mod.QueuePublisher, "publish", _fail)

    res = dispatch(_t("a", "ANY", url="ftp://x/y"), LogPayload(log_level="INFO", error_description="hi"))

    assert res.ok is False
    assert res.kind == "configuration"
