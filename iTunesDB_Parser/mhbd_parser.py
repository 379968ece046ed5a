from .errors import CorruptDatabase
from .layout import MIN_MHBD_HEADER
from .model import Library


def parse_db(data, offset, header_length, chunk_length, desc, parent_end) -> dict:
    from .chunk_parser import keep_header, parse_chunk

    if header_length < MIN_MHBD_HEADER:
        raise CorruptDatabase(f"mhbd header is {header_length} bytes, minimum is {MIN_MHBD_HEADER}")

    child_count = desc.read("mhbd", "child_count", data, offset)
    end = offset + chunk_length

    datasets = []
    next_offset = offset + header_length
    for i in range(child_count):
        response = parse_chunk(data, next_offset, desc, end, expected="mhsd")
        next_offset = response["nextOffset"]
        datasets.append(response["result"])

    library = Library(
        descriptor=desc,
        header=keep_header(data, offset, header_length, desc, "mhbd", "total_length", "child_count"),
        datasets=datasets,
        # anything between the last dataset and the declared end, then past it
        inner_tail=bytes(data[next_offset:end]),
        trailing=bytes(data[end:]),
    )

    return {"nextOffset": end, "result": library}
