#!/usr/bin/env python3
"""
Post a barcode dump to a running decoder server and print the response.
"""

import argparse
import base64
import json
from pathlib import Path

import requests

from sa_barcode.shared import Config, load_config

config: Config = load_config()
BASE_URL = f"http://{config.network.host}:{config.network.port}"


def parse_args():
    parser = argparse.ArgumentParser(description="Send a barcode dump to /decrypt")
    parser.add_argument("file", type=Path, help="Raw barcode bytes")
    parser.add_argument(
        "--type", choices=["drivers", "vehicle"], default="drivers", help="Document type"
    )
    parser.add_argument("--url", default=BASE_URL, help=f"Server URL (default: {BASE_URL})")
    return parser.parse_args()


def post_barcode(path: Path, document_type: str, url: str):
    barcode_b64 = base64.b64encode(path.read_bytes()).decode("utf-8")
    print(f"Read {path} and encoded {len(barcode_b64)} base64 characters")

    response = requests.post(
        f"{url}/decrypt/{document_type}",
        json={"barcodeData": barcode_b64},
        timeout=30,
    )
    print(f"Status: {response.status_code}")

    try:
        print(json.dumps(response.json(), indent=2))
    except requests.exceptions.JSONDecodeError:
        print(response.text)


if __name__ == "__main__":
    args = parse_args()
    post_barcode(args.file, args.type, args.url)
