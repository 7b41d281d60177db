"""JSON encoding helpers backed by ``msgspec``."""

from typing import Any, Union

import msgspec

__all__ = ("decode_json", "encode_json")

_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder()


def encode_json(data: Any, *, as_bytes: bool = False) -> Union[str, bytes]:
    """Encode data to JSON.

    Args:
        data: Data to encode.
        as_bytes: Return the raw bytes instead of a decoded string.

    Returns:
        The JSON document.
    """
    encoded = _encoder.encode(data)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def decode_json(data: Union[str, bytes]) -> Any:
    """Decode a JSON document."""
    return _decoder.decode(data)
