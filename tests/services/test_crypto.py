import base64

import pytest
from cryptography.exceptions import InvalidTag

from garden_logbook.core.crypto import decrypt, encrypt
from garden_logbook.services.govee import parse_capabilities

OTHER_KEY = base64.b64encode(b"z" * 32).decode()


def test_round_trip_uses_fresh_nonce():
    first = encrypt("govee-api-key")
    second = encrypt("govee-api-key")
    assert first != second
    assert decrypt(first) == decrypt(second) == "govee-api-key"
    assert len(first.split(":")) == 3


def test_tampered_ciphertext_is_rejected():
    iv, tag, data = encrypt("govee-api-key").split(":")
    flipped = bytearray(base64.b64decode(data))
    flipped[0] ^= 0x01
    with pytest.raises(InvalidTag):
        decrypt(":".join([iv, tag, base64.b64encode(bytes(flipped)).decode()]))


def test_wrong_key_is_rejected():
    with pytest.raises(InvalidTag):
        decrypt(encrypt("govee-api-key"), key=OTHER_KEY)


@pytest.mark.parametrize("token", ["", "abc", "a:b", "a::c"])
def test_malformed_token(token):
    with pytest.raises(ValueError):
        decrypt(token)


def test_short_key_is_refused():
    with pytest.raises(RuntimeError):
        encrypt("x", key=base64.b64encode(b"short").decode())


def test_parse_capabilities():
    parsed = parse_capabilities([
        {"instance": "sensorTemperature", "state": {"value": 77.5}},
        {"instance": "sensorHumidity", "state": {"value": "55"}},
        {"instance": "battery", "state": {"value": 88.0}},
        {"instance": "online", "state": {"value": True}},
    ])
    assert parsed == {"temperature_f": 77.5, "humidity": 55.0, "battery": 88}
    assert parse_capabilities([]) == {"temperature_f": None, "humidity": None, "battery": None}
