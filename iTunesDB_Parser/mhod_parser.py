import logging
from typing import Optional

from .constants import ENCODING_UTF8, STRING_MHOD_TYPES, mhod_type_map
from .layout import FormatDescriptor
from .model import DataObject

logger = logging.getLogger(__name__)

# string mhods: 24 byte header, 16 byte string header, then the characters
STRING_HEADER_LENGTH = 0x18
STRING_BODY_OFFSET = 0x28


def decode_string(raw: bytes, desc: FormatDescriptor) -> Optional[str]:
    """Decode the body of a string mhod, or None if it is not one we can read."""
    header_length = desc.read("mhod", "header_length", raw)
    if header_length != STRING_HEADER_LENGTH or len(raw) < STRING_BODY_OFFSET:
        return None

    encoding = desc.read("mhod", "encoding", raw)
    string_length = desc.read("mhod", "string_length", raw)
    if STRING_BODY_OFFSET + string_length > len(raw):
        logger.debug("mhod string length %d overruns its %d byte chunk", string_length, len(raw))
        return None

    string_data = raw[STRING_BODY_OFFSET:STRING_BODY_OFFSET + string_length]
    codec = "utf-8" if encoding == ENCODING_UTF8 else desc.string_codec
    try:
        return string_data.decode(codec)
    except UnicodeDecodeError:
        logger.debug("mhod string is not valid %s, keeping raw bytes", codec)
        return None


def parse_mhod(data, offset, header_length, chunk_length, desc, parent_end) -> dict:
    mhod_type = desc.read("mhod", "mhod_type", data, offset)
    raw = bytes(data[offset:offset + chunk_length])

    value = None
    if mhod_type in STRING_MHOD_TYPES:
        value = decode_string(raw, desc)
        if value is None:
            logger.debug(f"Undecodable {mhod_type_map.get(mhod_type, mhod_type)} mhod at 0x{offset:X}, kept raw")

    return {"nextOffset": offset + chunk_length, "result": DataObject(mhod_type, raw, value)}
