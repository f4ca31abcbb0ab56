import dis
import sys
from typing import Optional, TextIO

from . import bytecode
from .block import PythonBlock


def disassemble(blob: bytes, out: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    header = bytecode.read_header(blob)
    print(f"Header: {bytecode.HEADER.decode()}, Version: {header.version}", file=out)
    print(f"Interpreter magic: {header.magic.hex()}", file=out)
    print(f"Seal: {header.seal.hex()}", file=out)
    print(f"Code ({header.length} bytes):", file=out)
    dis.dis(bytecode.unpack(blob), file=out)


def disassemble_block(block: PythonBlock, out: Optional[TextIO] = None) -> None:
    out = out or sys.stdout
    where = block.call_site or block.filename
    names = ", ".join(f"'{v}" for v in block.variables) or "none"
    print(f"Block at {where} [{block.mode}], host variables: {names}", file=out)
    disassemble(block.bytecode, out)
