"""Versioned packaging of compiled code objects.

Layout::

    b"PYINL"  format version (1 byte)  interpreter magic (4 bytes)
    seal: sha256 of the payload (32 bytes)
    payload length (<I)  payload: marshal.dumps(code)

A blob is only valid for the interpreter version whose magic number it
carries.
"""

import hashlib
import importlib.util
import marshal
import struct
from dataclasses import dataclass
from types import CodeType

from .exceptions import SerializationError

HEADER = b"PYINL"
FORMAT_VERSION = 1
MAGIC = importlib.util.MAGIC_NUMBER
_PREFIX_LEN = len(HEADER) + 1 + len(MAGIC) + 32 + 4


@dataclass(frozen=True)
class BlobHeader:
    version: int
    magic: bytes
    seal: bytes
    length: int


def pack(code: CodeType) -> bytes:
    try:
        payload = marshal.dumps(code)
    except ValueError as e:
        raise SerializationError(f"failed to generate python byte-code: {e}") from e

    blob = bytearray()
    blob.extend(HEADER)
    blob.append(FORMAT_VERSION)
    blob.extend(MAGIC)
    blob.extend(hashlib.sha256(payload).digest())
    blob.extend(struct.pack("<I", len(payload)))
    blob.extend(payload)
    return bytes(blob)


def read_header(blob: bytes) -> BlobHeader:
    if len(blob) < _PREFIX_LEN or not blob.startswith(HEADER):
        raise SerializationError("not a compiled python block")
    idx = len(HEADER)
    version = blob[idx]
    idx += 1
    magic = bytes(blob[idx : idx + len(MAGIC)])
    idx += len(MAGIC)
    seal = bytes(blob[idx : idx + 32])
    idx += 32
    length = struct.unpack("<I", blob[idx : idx + 4])[0]
    return BlobHeader(version, magic, seal, length)


def unpack(blob: bytes) -> CodeType:
    header = read_header(blob)
    if header.version != FORMAT_VERSION:
        raise SerializationError(f"unsupported block format version {header.version}")
    if header.magic != MAGIC:
        raise SerializationError(
            "block was compiled for a different Python version "
            f"(magic {header.magic.hex()}, expected {MAGIC.hex()})"
        )
    payload = blob[_PREFIX_LEN:]
    if len(payload) != header.length:
        raise SerializationError(f"expected {header.length} bytes of code, got {len(payload)}")
    if hashlib.sha256(payload).digest() != header.seal:
        raise SerializationError("block seal does not match its code")
    try:
        code = marshal.loads(payload)
    except (EOFError, ValueError, TypeError) as e:
        raise SerializationError(f"failed to read python byte-code: {e}") from e
    if not isinstance(code, CodeType):
        raise SerializationError("block payload is not a code object")
    return code
