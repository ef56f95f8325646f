#!/usr/bin/env python3

import argparse
import base64
import binascii
import sys
from pathlib import Path

from sa_barcode.core import DecryptionError, DocumentType, decode_barcode, load_key_ring
from sa_barcode.shared import Config, load_config

config: Config = load_config()


def parse_args():
    parser = argparse.ArgumentParser(
        description="Decode a scanned licence barcode dump with the configured keys"
    )
    parser.add_argument("file", type=Path, help="Barcode dump (raw bytes or base64)")
    parser.add_argument(
        "--type",
        type=DocumentType,
        choices=list(DocumentType),
        default=DocumentType.DRIVERS,
        help="Document type (default: drivers)",
    )
    parser.add_argument(
        "--base64",
        action="store_true",
        help="The file holds base64 text rather than raw bytes",
    )
    return parser.parse_args()


def read_dump(path: Path, is_base64: bool) -> bytes:
    data = path.read_bytes()
    if not is_base64:
        return data
    try:
        return base64.b64decode(b"".join(data.split()), validate=True)
    except binascii.Error as e:
        print(f"[!] {path} is not valid base64: {e}")
        sys.exit(1)


def decode(path: Path, document_type: DocumentType, is_base64: bool):
    keys = load_key_ring(config.decrypt)
    raw = read_dump(path, is_base64)

    try:
        record = decode_barcode(raw, document_type, keys)
    except DecryptionError as e:
        print(f"[!] Could not decode {path}: {e}")
        sys.exit(1)

    print(record.model_dump_json(by_alias=True, indent=2))


if __name__ == "__main__":
    args = parse_args()
    decode(args.file, args.type, args.base64)
