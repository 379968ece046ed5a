def parse_list(data, offset, header_length, count, desc, parent_end, list_type, item_type) -> dict:
    """Shared body of the three list chunks: header, then `count` items."""
    from .chunk_parser import keep_header, parse_chunk

    items = []
    next_offset = offset + header_length
    for i in range(count):
        response = parse_chunk(data, next_offset, desc, parent_end, expected=item_type)
        next_offset = response["nextOffset"]
        items.append(response["result"])

    header = keep_header(data, offset, header_length, desc, list_type, "count")
    return {"nextOffset": next_offset, "result": {"header": header, "items": items}}


def parse_trackList(data, offset, header_length, chunk_length, desc, parent_end) -> dict:
    # chunk_length is the number of tracks for list chunks
    return parse_list(data, offset, header_length, chunk_length, desc, parent_end, "mhlt", "mhit")
