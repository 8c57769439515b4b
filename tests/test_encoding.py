import base64
import os

import pytest

from salescoach.encoding import decode_audio, encode_audio, strip_envelope
from salescoach.errors import EncodingFailed
from salescoach.models import DEFAULT_MIME_TYPE, AudioPayload, EncodedAudio


@pytest.mark.parametrize("size", [1, 2, 3, 1000, 65537])
def test_encoding_is_lossless(size):
    raw = os.urandom(size)
    payload = AudioPayload(mime_type="audio/mpeg", display_name="call.mp3", data=raw)
    encoded = encode_audio(payload)
    assert encoded.mime_type == "audio/mpeg"
    assert not encoded.base64_payload.startswith("data:")
    assert decode_audio(encoded) == raw


def test_strip_envelope():
    assert strip_envelope("data:audio/mp3;base64,SUQz") == "SUQz"
    assert strip_envelope("SUQz") == "SUQz"


def test_decode_accepts_enveloped_payload():
    encoded = EncodedAudio(base64_payload="data:audio/wav;base64,SUQz", mime_type="audio/wav")
    assert decode_audio(encoded) == b"ID3"


def test_encode_reads_path_lazily(tmp_path):
    path = tmp_path / "call.wav"
    path.write_bytes(b"RIFF1234")
    payload = AudioPayload(mime_type="audio/wav", display_name="call.wav", path=str(path))
    encoded = encode_audio(payload)
    assert encoded.base64_payload == base64.b64encode(b"RIFF1234").decode("ascii")


def test_read_error_is_encoding_failed(tmp_path):
    path = tmp_path / "call.wav"
    path.write_bytes(b"RIFF")
    payload = AudioPayload(mime_type="audio/wav", display_name="call.wav", path=str(path))
    path.unlink()
    with pytest.raises(EncodingFailed):
        encode_audio(payload)


def test_empty_source_is_encoding_failed(tmp_path):
    path = tmp_path / "call.wav"
    path.write_bytes(b"")
    payload = AudioPayload(mime_type="audio/wav", display_name="call.wav", path=str(path))
    with pytest.raises(EncodingFailed):
        encode_audio(payload)


def test_payload_defaults_mime_type():
    payload = AudioPayload(mime_type="", display_name="blob", data=b"x")
    assert payload.mime_type == DEFAULT_MIME_TYPE


def test_payload_requires_one_source():
    with pytest.raises(ValueError):
        AudioPayload(mime_type="audio/wav", display_name="x")
    with pytest.raises(ValueError):
        AudioPayload(mime_type="audio/wav", display_name="x", data=b"")


def test_file_grown_after_selection_is_encoding_failed(tmp_path):
    from salescoach.uploads import select_path

    path = tmp_path / "call.mp3"
    path.write_bytes(b"ID3" + b"\x00" * 27)
    payload = select_path(str(path))
    with open(path, "wb") as handle:
        handle.truncate(25 * 1024 * 1024)
    with pytest.raises(EncodingFailed):
        encode_audio(payload)


def test_encode_honours_custom_limit():
    payload = AudioPayload(mime_type="audio/wav", display_name="call.wav", data=b"x" * 11)
    assert decode_audio(encode_audio(payload, max_bytes=11)) == b"x" * 11
    with pytest.raises(EncodingFailed):
        encode_audio(payload, max_bytes=10)
