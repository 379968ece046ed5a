from .constants import TRACK_STRING_FIELDS
from .layout import mac_to_unix
from .model import Track


def parse_trackItem(data, offset, header_length, chunk_length, desc, parent_end) -> dict:
    from .chunk_parser import keep_header, parse_chunk

    def field(name):
        # 0 for fields past the end of an older, shorter header
        return desc.read("mhit", name, data, offset, header_length)

    track = Track(
        track_id=field("track_id"),
        dbid=field("dbid"),
        size=field("size"),
        length=field("length"),
        bitrate=field("bitrate"),
        sample_rate=field("sample_rate") >> 16,
        filetype=field("filetype"),
        vbr=field("vbr"),
        year=field("year"),
        track_number=field("track_number"),
        disc_number=field("disc_number"),
        date_added=mac_to_unix(field("date_added")),
        media_type=field("media_type"),
        album_id=field("album_id") if desc.has("mhit", "album_id", header_length) else 0,
        header=keep_header(data, offset, header_length, desc, "mhit", "total_length", "child_count"),
    )

    # Parse Children
    end = offset + chunk_length
    seen = set()
    next_offset = offset + header_length
    for i in range(field("child_count")):
        response = parse_chunk(data, next_offset, desc, end, expected="mhod")
        next_offset = response["nextOffset"]

        mhod = response["result"]
        track.mhods.append(mhod)

        attr = TRACK_STRING_FIELDS.get(mhod.mhod_type)
        if attr is not None and mhod.value is not None and attr not in seen:
            seen.add(attr)
            setattr(track, attr, mhod.value)

    track.tail = bytes(data[next_offset:end])

    return {"nextOffset": end, "result": track}
