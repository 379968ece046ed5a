"""
Helpers shared by every chunk writer.

Headers are built once (from a decoded chunk or from defaults) and then
patched field by field through the FormatDescriptor, so the same code
writes little-endian and byte-reversed databases.
"""

from iTunesDB_Parser.layout import FormatDescriptor


def new_header(desc: FormatDescriptor, chunk: str, header_length: int) -> bytearray:
    """Zeroed header with the tag and header length filled in."""
    header = bytearray(header_length)
    header[0:4] = desc.tag(chunk)
    desc.write(chunk, "header_length", header, header_length)
    return header


def put_field(desc: FormatDescriptor, chunk: str, header: bytearray, name: str, value) -> None:
    """
    Write a modelled field into a header copy.

    Nothing happens when the field lies past the header or already holds
    the value, so untouched records keep their exact original bytes.
    """
    if not desc.has(chunk, name, len(header)):
        return
    if desc.read(chunk, name, header) != value:
        desc.write(chunk, name, header, value)


def finish_header(desc: FormatDescriptor, chunk: str, header: bytes, **recomputed: int) -> bytes:
    """Fill in the total length and child counts right before emitting."""
    out = bytearray(header)
    for name, value in recomputed.items():
        desc.write(chunk, name, out, value, header_length=len(out))
    return bytes(out)
