"""
Simple client script to exercise the hairstyle transform API.

Usage examples:

Transform:
    python transform_api_client.py \
        --style samples/style.jpg \
        --person samples/me.jpg \
        --user-id <supabase user id> \
        --token <access token> \
        --output result.png

Endpoint description:
    python transform_api_client.py --info
"""

from __future__ import annotations

import argparse
import base64
import mimetypes
import sys
from pathlib import Path
from typing import Optional, Sequence

import requests

from config import API_BASE


def image_file(value: str) -> Path:
    """argparse type: an existing regular file, with ~ expanded"""
    path = Path(value).expanduser().resolve()
    if not path.is_file():
        raise argparse.ArgumentTypeError(f"no such image file: {path}")
    return path


def decode_data_url(data_url: str) -> bytes:
    header, _, payload = data_url.partition(",")
    if not header.startswith("data:") or ";base64" not in header:
        raise ValueError("processedImage is not a base64 data URL")
    return base64.b64decode(payload)


def call_transform(
    base_url: str,
    style_path: Path,
    person_path: Path,
    user_id: str,
    token: str,
    output_path: Path,
) -> None:
    style_mime = mimetypes.guess_type(style_path.name)[0] or "image/png"
    person_mime = mimetypes.guess_type(person_path.name)[0] or "image/png"

    with style_path.open("rb") as style_file, person_path.open("rb") as person_file:
        files = {
            "sourceImage": (style_path.name, style_file, style_mime),
            "targetImage": (person_path.name, person_file, person_mime),
        }
        response = requests.post(
            f"{base_url}/api/v1/transform",
            files=files,
            data={"userId": user_id},
            headers={"Authorization": f"Bearer {token}"},
            timeout=600,
        )

    body = response.json()
    if response.status_code != 200:
        print("Request failed:", response.status_code, body.get("error"))
        if body.get("userSubMessage"):
            print(body["userSubMessage"])
        if "currentCredits" in body:
            print(f"Credits: {body['currentCredits']}")
        response.raise_for_status()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(decode_data_url(body["processedImage"]))
    print(f"Saved generated image to {output_path}")
    print(f"Credits deducted: {body['creditsDeducted']} - remaining credits: {body['newCredits']}")


def call_info(base_url: str) -> None:
    response = requests.get(f"{base_url}/api/v1/transform", timeout=30)
    response.raise_for_status()
    print(response.json())


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Test the hairstyle transform API.")
    parser.add_argument(
        "--base-url",
        default=API_BASE,
        help="API base URL.",
    )
    parser.add_argument(
        "--info",
        action="store_true",
        help="Only fetch the endpoint description.",
    )
    parser.add_argument(
        "--style",
        type=image_file,
        help="Path to the hairstyle inspiration image.",
    )
    parser.add_argument(
        "--person",
        type=image_file,
        help="Path to the photo of the person.",
    )
    parser.add_argument(
        "--user-id",
        type=str,
        help="Supabase user id the token was issued to.",
    )
    parser.add_argument(
        "--token",
        type=str,
        help="Supabase access token.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("hairstyle_result.png"),
        help="Output file path.",
    )
    return parser.parse_args(argv)


def main() -> None:
    args = parse_args()

    if args.info:
        call_info(args.base_url)
        return

    if not all([args.style, args.person, args.user_id, args.token]):
        print("--style, --person, --user-id and --token are required.", file=sys.stderr)
        sys.exit(1)

    call_transform(
        base_url=args.base_url,
        style_path=args.style,
        person_path=args.person,
        user_id=args.user_id,
        token=args.token,
        output_path=args.output,
    )


if __name__ == "__main__":
    main()
