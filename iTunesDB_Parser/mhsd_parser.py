import logging

from .constants import chunk_type_map
from .model import Dataset

logger = logging.getLogger(__name__)


def parse_dataset(data, offset, header_length, chunk_length, desc, parent_end) -> dict:
    from .chunk_parser import keep_header, parse_chunk

    kind = desc.read("mhsd", "kind", data, offset)
    end = offset + chunk_length

    list_type = chunk_type_map.get(kind)
    if list_type is None:
        # kinds we do not understand (genius, 6+, ...) survive untouched
        logger.debug("Keeping mhsd kind %d (%d bytes) as opaque", kind, chunk_length)
        return {"nextOffset": end, "result": Dataset(kind=kind, opaque=bytes(data[offset:end]))}

    response = parse_chunk(data, offset + header_length, desc, end, expected=list_type)
    listing = response["result"]
    next_offset = response["nextOffset"]

    dataset = Dataset(
        kind=kind,
        header=keep_header(data, offset, header_length, desc, "mhsd", "total_length"),
        list_tag=list_type,
        list_header=listing["header"],
        tail=bytes(data[next_offset:end]),
    )
    match list_type:
        case "mhlt":
            dataset.tracks = listing["items"]
        case "mhlp":
            dataset.playlists = listing["items"]
        case "mhla":
            dataset.albums = listing["items"]

    return {"nextOffset": end, "result": dataset}
