import json
import logging

from aggregation.utils.logging import JsonFormatter, _ExtraFormatter


def _record(**extra):
    record = logging.LogRecord("aggregation.test", logging.WARNING, __file__, 1, "adapter.timeout", None, None)
    record.__dict__.update(extra)
    return record


def test_json_formatter_emits_event_and_extra_fields():
    line = JsonFormatter().format(_record(provider="gnews", timeout_s=10.0))
    payload = json.loads(line)
    assert payload["event"] == "adapter.timeout"
    assert payload["level"] == "WARNING"
    assert payload["provider"] == "gnews"
    assert payload["timeout_s"] == 10.0
    assert "msg" not in payload


def test_json_formatter_stringifies_unknown_types():
    payload = json.loads(JsonFormatter().format(_record(keys={"a"})))
    assert payload["keys"] == "{'a'}"


def test_text_formatter_appends_key_values():
    line = _ExtraFormatter("%(levelname)s %(message)s").format(_record(provider="nytimes"))
    assert line == "WARNING adapter.timeout provider=nytimes"
