from typing import Union

from .errors import BencodeSyntaxError

# A decoded bencode value is exactly one of these four types. Dictionary
# keys are always byte strings.
BencodeValue = Union[int, bytes, list["BencodeValue"], dict[bytes, "BencodeValue"]]

MAX_DEPTH = 256
INT_MIN = -(2**63)
INT_MAX = 2**63 - 1

_DIGITS = b"0123456789"


# Examples:
#
# - decode_bencode(b"5:hello") -> b"hello", 7
# - decode_bencode(b"10:hello12345") -> b"hello12345", 13
# - decode_bencode(b"li1ei2ee") -> [1, 2], 8
def decode_bencode(bencode: bytes, pos: int = 0) -> tuple[BencodeValue, int]:
    return _decode_value(bencode, pos, 0)


def decode_bencode_all(bencode: bytes) -> BencodeValue:
    value, pos = decode_bencode(bencode)
    if pos != len(bencode):
        raise BencodeSyntaxError(
            f"{len(bencode) - pos} trailing bytes after bencoded value",
            {"offset": pos},
        )
    return value


def _decode_value(bencode: bytes, pos: int, depth: int) -> tuple[BencodeValue, int]:
    if pos >= len(bencode):
        raise BencodeSyntaxError("Unexpected end of input", {"offset": pos})

    tag = bencode[pos : pos + 1]
    if tag == b"l":  # lists
        _check_depth(depth, pos)
        items = []
        pos += 1  # +1 to account for the start of list marker
        while _peek(bencode, pos) != b"e":
            item, pos = _decode_value(bencode, pos, depth + 1)
            items.append(item)

        return items, pos + 1  # +1 to account for the end of list marker
    elif tag == b"d":  # dictionaries
        _check_depth(depth, pos)
        # Keys may arrive in any order; encode_bencode re-sorts them, so the
        # order seen here never reaches the info hash
        items = {}
        pos += 1
        while _peek(bencode, pos) != b"e":
            if bencode[pos] not in _DIGITS:
                raise BencodeSyntaxError(
                    "Dictionary key must be a byte string", {"offset": pos}
                )
            key, pos = _decode_string(bencode, pos)
            if key in items:
                raise BencodeSyntaxError(
                    f"Duplicate dictionary key {key!r}", {"offset": pos}
                )
            value, pos = _decode_value(bencode, pos, depth + 1)
            items[key] = value

        return items, pos + 1  # +1 to account for the end of dictionary marker
    elif tag == b"i":  # integers
        return _decode_integer(bencode, pos)
    elif bencode[pos] in _DIGITS:  # strings
        return _decode_string(bencode, pos)

    raise BencodeSyntaxError(f"Unrecognized bencode tag {tag!r}", {"offset": pos})


def _peek(bencode: bytes, pos: int) -> bytes:
    # Running off the end inside a list or dict is always an error
    if pos >= len(bencode):
        raise BencodeSyntaxError("Unterminated list or dictionary", {"offset": pos})
    return bencode[pos : pos + 1]


def _check_depth(depth: int, pos: int):
    if depth >= MAX_DEPTH:
        raise BencodeSyntaxError(
            f"Nesting deeper than {MAX_DEPTH} levels", {"offset": pos}
        )


def _decode_integer(bencode: bytes, pos: int) -> tuple[int, int]:
    end = bencode.find(b"e", pos + 1)
    if end == -1:
        raise BencodeSyntaxError("Missing 'e' terminator for integer", {"offset": pos})

    raw = bencode[pos + 1 : end]
    digits = raw[1:] if raw.startswith(b"-") else raw
    if not digits or any(ch not in _DIGITS for ch in digits):
        raise BencodeSyntaxError(f"Invalid integer {raw!r}", {"offset": pos})
    # Canonical form only: no leading zeros and no negative zero
    if (digits.startswith(b"0") and len(digits) > 1) or raw == b"-0":
        raise BencodeSyntaxError(f"Non-canonical integer {raw!r}", {"offset": pos})

    # 2**63 has 19 digits; anything longer is out of range before converting
    if len(digits) > 19:
        raise BencodeSyntaxError(
            f"Integer of {len(digits)} digits does not fit in 64 bits", {"offset": pos}
        )
    value = int(raw)
    if not INT_MIN <= value <= INT_MAX:
        raise BencodeSyntaxError(
            f"Integer {raw!r} does not fit in 64 bits", {"offset": pos}
        )
    return value, end + 1  # +1 to account for the end of int marker


def _decode_string(bencode: bytes, pos: int) -> tuple[bytes, int]:
    colon = bencode.find(b":", pos)
    if colon == -1:
        raise BencodeSyntaxError("Missing ':' after string length", {"offset": pos})

    raw_length = bencode[pos:colon]
    if not raw_length or any(ch not in _DIGITS for ch in raw_length):
        raise BencodeSyntaxError(
            f"Invalid string length {raw_length!r}", {"offset": pos}
        )
    if raw_length.startswith(b"0") and len(raw_length) > 1:
        raise BencodeSyntaxError(
            f"Non-canonical string length {raw_length!r}", {"offset": pos}
        )

    # A length with more digits than the input size can never be satisfied
    if len(raw_length) > len(str(len(bencode))):
        raise BencodeSyntaxError(
            f"String length of {len(raw_length)} digits runs past end of input",
            {"offset": pos},
        )
    length = int(raw_length)
    start = colon + 1
    end = start + length
    if end > len(bencode):
        raise BencodeSyntaxError(
            f"String of length {length} runs past end of input", {"offset": pos}
        )
    return bencode[start:end], end


def encode_bencode(data: BencodeValue) -> bytes:
    return b"".join(_encode_parts(data))


def _encode_parts(data: BencodeValue):
    # bool is an int subclass but has no bencode form
    if isinstance(data, bool):
        raise TypeError(f"Cannot encode {type(data)}")
    if isinstance(data, int):
        yield f"i{data}e".encode()
    elif isinstance(data, bytes):
        yield f"{len(data)}:".encode()
        yield data
    elif isinstance(data, list):
        yield b"l"
        for element in data:
            yield from _encode_parts(element)
        yield b"e"
    elif isinstance(data, dict):
        for key in data:
            if not isinstance(key, bytes):
                raise TypeError(f"Dictionary keys must be bytes, got {type(key)}")
        yield b"d"
        # Keys are sorted by raw byte value, which is what the info hash of
        # every other client is computed over
        for key in sorted(data):
            yield from _encode_parts(key)
            yield from _encode_parts(data[key])
        yield b"e"
    else:
        raise TypeError(f"Cannot encode {type(data)}")


# json.dumps() can't handle bytes, but bencoded "strings" need to be
# bytestrings since they might contain non utf-8 characters.
#
# Let's convert them to strings for printing to the console, and fall
# back to hex for binary blobs such as piece hashes.
def bytes_to_str(data: bytes) -> str:
    if isinstance(data, bytes):
        try:
            return data.decode()
        except UnicodeDecodeError:
            return data.hex()

    raise TypeError(f"Type not serializable: {type(data)}")


# json.dumps() also refuses bytes as dictionary keys, so walk the value
# and convert keys up front.
def to_jsonable(data: BencodeValue):
    if isinstance(data, dict):
        return {bytes_to_str(key): to_jsonable(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [to_jsonable(element) for element in data]
    elif isinstance(data, bytes):
        return bytes_to_str(data)
    return data
