from .mhlt_parser import parse_list


def parse_albumList(data, offset, header_length, chunk_length, desc, parent_end) -> dict:
    return parse_list(data, offset, header_length, chunk_length, desc, parent_end, "mhla", "mhia")
