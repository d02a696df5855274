"""
UTF-8 decoding primitive.

The parser never compares shortnames by raw bytes: it decodes the codepoint at
a byte offset and compares scalar values. Python hands argv over as str, with
undecodable bytes smuggled through as lone surrogates (surrogateescape), so the
tokens are first brought back to their raw bytes with encode() and then walked
here one codepoint at a time.

decode_leading(data, offset=0) -> Success((codepoint, length)) | Failure(DecodeFailure)
  • length is the byte length of the sequence starting at data[offset].
  • rejects: empty input, stray continuation bytes, truncated sequences,
    overlong forms, UTF-16 surrogates and values above U+10FFFF.
"""
from .outcome import Success, Failure


class DecodeFailure:
    """
    Why a byte sequence could not be decoded, and where.
    """
    __slots__ = ("offset", "reason")

    def __init__(self, offset, reason):
        self.offset = offset
        self.reason = reason

    def __eq__(self, other):
        if not isinstance(other, DecodeFailure):
            return NotImplemented
        return (self.offset, self.reason) == (other.offset, other.reason)

    def __hash__(self):
        return hash((self.offset, self.reason))

    def __repr__(self):
        return f"DecodeFailure(offset={self.offset!r}, reason={self.reason!r})"

    def __str__(self):
        return f"{self.reason} at byte {self.offset}"


# (lead mask, lead marker, sequence length, payload mask, smallest scalar for that length)
_LEADS = (
    (0x80, 0x00, 1, 0x7F, 0x00),
    (0xE0, 0xC0, 2, 0x1F, 0x80),
    (0xF0, 0xE0, 3, 0x0F, 0x800),
    (0xF8, 0xF0, 4, 0x07, 0x10000),
)


def encode(token, /):
    """
    Return the raw bytes behind an argv token.

    Surrogate-escaped bytes come back as the original bytes; any other lone
    surrogate is kept in its (invalid) UTF-8 form so that decoding fails on it.
    """
    if isinstance(token, bytes | bytearray):
        return bytes(token)
    if not isinstance(token, str):
        raise TypeError("encode() argument must be a string or bytes")
    try:
        return token.encode("utf-8", "surrogateescape")
    except UnicodeEncodeError:
        return token.encode("utf-8", "surrogatepass")


def decode_leading(data, offset=0, /):
    if offset >= len(data):
        return Failure(DecodeFailure(offset, "empty input"))

    lead = data[offset]
    for mask, marker, length, payload, smallest in _LEADS:
        if lead & mask == marker:
            break
    else:
        return Failure(DecodeFailure(offset, "invalid lead byte"))

    if offset + length > len(data):
        return Failure(DecodeFailure(offset, "truncated sequence"))

    codepoint = lead & payload
    for index in range(offset + 1, offset + length):
        if data[index] & 0xC0 != 0x80:
            return Failure(DecodeFailure(index, "invalid continuation byte"))
        codepoint = (codepoint << 6) | (data[index] & 0x3F)

    if codepoint < smallest:
        return Failure(DecodeFailure(offset, "overlong encoding"))
    if 0xD800 <= codepoint <= 0xDFFF:
        return Failure(DecodeFailure(offset, "surrogate codepoint"))
    if codepoint > 0x10FFFF:
        return Failure(DecodeFailure(offset, "codepoint out of range"))
    return Success((codepoint, length))


def codepoints(data, /):
    """
    Yield an Outcome per codepoint of data, stopping after the first failure.

    Successes carry (codepoint, offset, length).
    """
    offset = 0
    while offset < len(data):
        if not (outcome := decode_leading(data, offset)):
            yield outcome
            return
        codepoint, length = outcome.value
        yield Success((codepoint, offset, length))
        offset += length


__all__ = (
    "DecodeFailure",
    "encode",
    "decode_leading",
    "codepoints",
)
