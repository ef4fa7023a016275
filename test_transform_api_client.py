import base64

import pytest

from transform_api_client import decode_data_url, parse_args


def test_image_paths_are_resolved(tmp_path):
    style = tmp_path / "style.jpg"
    person = tmp_path / "me.png"
    style.write_bytes(b"style")
    person.write_bytes(b"person")

    args = parse_args(["--style", str(style), "--person", str(person), "--user-id", "u", "--token", "t"])

    assert args.style == style.resolve()
    assert args.person == person.resolve()


@pytest.mark.parametrize("name", ["missing.jpg", "."])
def test_missing_or_non_file_image_is_a_usage_error(tmp_path, capsys, name):
    with pytest.raises(SystemExit) as exc_info:
        parse_args(["--style", str(tmp_path / name)])

    assert exc_info.value.code == 2
    assert "no such image file" in capsys.readouterr().err


def test_decode_data_url():
    payload = base64.b64encode(b"png-bytes").decode()

    assert decode_data_url(f"data:image/png;base64,{payload}") == b"png-bytes"
    with pytest.raises(ValueError):
        decode_data_url("https://example.com/result.png")
