import pytest

from localcoder_runner.request import HarnessRequest, Mode, RequestDecodeError, decode_request


def test_decode_executor_request_without_input() -> None:
    req = decode_request(b'{"mode": "executor", "code": "print(1)"}')
    assert req == HarnessRequest(mode=Mode.EXECUTOR, code="print(1)", input_data=None)


def test_decode_test_request_keeps_structured_input() -> None:
    req = decode_request('{"code": "x", "input": {"a": [1, 2]}, "mode": "test"}')
    assert req.mode is Mode.TEST
    assert req.input_data == {"a": [1, 2]}


def test_decode_ignores_unknown_fields() -> None:
    req = decode_request('{"mode": "executor", "code": "", "extra": true}')
    assert req.code == ""


@pytest.mark.parametrize(
    "payload, fragment",
    [
        ('{"mode": "executor", "code": ', "Invalid input JSON"),
        ("[1, 2]", "expected a JSON object"),
        ('"text"', "expected a JSON object"),
        ('{"code": "x"}', "missing field `mode`"),
        ('{"mode": "test"}', "missing field `code`"),
        ('{"mode": "Executor", "code": "x"}', "unknown variant `Executor`"),
        ('{"mode": "run", "code": "x"}', "unknown variant `run`"),
        ('{"mode": 1, "code": "x"}', "`mode` must be a string"),
        ('{"mode": "test", "code": null}', "`code` must be a string"),
        ("", "Invalid input JSON"),
    ],
)
def test_decode_rejects_malformed_payloads(payload: str, fragment: str) -> None:
    with pytest.raises(RequestDecodeError) as exc:
        decode_request(payload)
    assert str(exc.value).startswith("Invalid input JSON:")
    assert fragment in str(exc.value)


def test_decode_rejects_invalid_utf8() -> None:
    with pytest.raises(RequestDecodeError, match="not valid UTF-8"):
        decode_request(b'{"mode": "executor", "code": "\xff"}')


def test_decode_error_is_a_value_error() -> None:
    assert issubclass(RequestDecodeError, ValueError)
