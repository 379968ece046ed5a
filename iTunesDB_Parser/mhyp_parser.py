from .constants import PLAYLIST_NAME_MHOD
from .model import Playlist, PlaylistItem


def parse_playlist(data, offset, header_length, chunk_length, desc, parent_end) -> dict:
    from .chunk_parser import keep_header, parse_chunk

    end = offset + chunk_length
    playlist = Playlist(
        kind=desc.read("mhyp", "kind", data, offset, header_length),
        playlist_id=desc.read("mhyp", "playlist_id", data, offset, header_length),
        header=keep_header(data, offset, header_length, desc, "mhyp", "total_length", "child_count", "item_count"),
    )

    named = False
    # data objects first (name, sort indices, ...), then the items
    next_offset = offset + header_length
    for i in range(desc.read("mhyp", "child_count", data, offset)):
        response = parse_chunk(data, next_offset, desc, end, expected="mhod")
        next_offset = response["nextOffset"]
        mhod = response["result"]
        playlist.mhods.append(mhod)
        if mhod.mhod_type == PLAYLIST_NAME_MHOD and mhod.value is not None and not named:
            named = True
            playlist.name = mhod.value

    for i in range(desc.read("mhyp", "item_count", data, offset)):
        response = parse_chunk(data, next_offset, desc, end, expected="mhip")
        next_offset = response["nextOffset"]
        playlist.items.append(response["result"])

    playlist.tail = bytes(data[next_offset:end])

    return {"nextOffset": end, "result": playlist}


def parse_playlistItem(data, offset, header_length, chunk_length, desc, parent_end) -> dict:
    from .chunk_parser import keep_header, parse_chunk

    end = offset + chunk_length
    item = PlaylistItem(
        track_id=desc.read("mhip", "track_id", data, offset, header_length),
        podcast_group_flag=desc.read("mhip", "podcast_group_flag", data, offset, header_length),
        header=keep_header(data, offset, header_length, desc, "mhip", "total_length", "child_count"),
    )

    next_offset = offset + header_length
    for i in range(desc.read("mhip", "child_count", data, offset)):
        response = parse_chunk(data, next_offset, desc, end, expected="mhod")
        next_offset = response["nextOffset"]
        item.mhods.append(response["result"])

    item.tail = bytes(data[next_offset:end])

    return {"nextOffset": end, "result": item}
