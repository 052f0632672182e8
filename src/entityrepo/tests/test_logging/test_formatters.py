# src/entityrepo/tests/test_logging/test_formatters.py
import json
import logging
import sys

from entityrepo.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record():
    # create a LogRecord that simulates formatting with args
    return logging.LogRecord("entityrepo", logging.INFO, __file__, 10, "hello %s", ("tester",), None)


def test_json_formatter_basic_fields():
    rec = make_record()
    # attach an extra (simulate extra param)
    rec.entity = "Customer"
    rec.principal = "alice"
    fmt = JsonFormatter(env="testing", service="svc")
    out = fmt.format(rec)
    data = json.loads(out)
    # core assertions
    assert data["message"] == "hello tester"
    assert data["level"] == "INFO"
    assert data["service"] == "svc"
    assert data["env"] == "testing"
    assert "timestamp" in data
    assert data["principal"] == "alice"
    assert data["entity"] == "Customer"
    assert "version" in data


def test_json_formatter_principal_missing():
    data = json.loads(JsonFormatter().format(make_record()))
    assert data["principal"] == "-"
    assert data["service"] == "entityrepo"


def test_json_formatter_non_serializable_extra():
    rec = make_record()
    class X:
        def __repr__(self):
            return "<X>"
    rec.obj = X()
    fmt = JsonFormatter(env="dev", service="svc")
    out = fmt.format(rec)
    data = json.loads(out)
    # non-serializable obj should be stringified
    assert isinstance(data["obj"], str)


def test_json_formatter_includes_exception():
    try:
        raise RuntimeError("kaboom")
    except RuntimeError:
        rec = logging.LogRecord("entityrepo", logging.ERROR, __file__, 10, "failed", (), sys.exc_info())
    data = json.loads(JsonFormatter().format(rec))
    assert "RuntimeError: kaboom" in data["exc_info"]


def test_color_formatter_appends_extras():
    rec = make_record()
    rec.principal = "alice"
    rec.guid = "g-1"
    out = ColorFormatter().format(rec)
    assert "hello tester" in out
    assert "alice" in out
    assert "guid=g-1" in out
    assert "principal=" not in out
