from .constants import ALBUM_STRING_FIELDS
from .model import Album


def parse_albumItem(data, offset, header_length, chunk_length, desc, parent_end) -> dict:
    from .chunk_parser import keep_header, parse_chunk

    end = offset + chunk_length
    album = Album(
        album_id=desc.read("mhia", "album_id", data, offset, header_length),
        header=keep_header(data, offset, header_length, desc, "mhia", "total_length", "child_count"),
    )

    seen = set()
    next_offset = offset + header_length
    for i in range(desc.read("mhia", "child_count", data, offset)):
        response = parse_chunk(data, next_offset, desc, end, expected="mhod")
        next_offset = response["nextOffset"]
        mhod = response["result"]
        album.mhods.append(mhod)

        attr = ALBUM_STRING_FIELDS.get(mhod.mhod_type)
        if attr is not None and mhod.value is not None and attr not in seen:
            seen.add(attr)
            setattr(album, attr, mhod.value)

    album.tail = bytes(data[next_offset:end])

    return {"nextOffset": end, "result": album}
