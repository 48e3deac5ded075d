# pixmap.py

# Copyright (c) 2023, rasterfile developers
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.
#
# 3. Neither the name of the copyright holder nor the names of its
#    contributors may be used to endorse or promote products derived from
#    this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

"""Decode Netpbm PixMap images.

- PBM (Portable Bit Map): P1 (text) and P4 (binary)
- PGM (Portable Gray Map): P2 (text) and P5 (binary)
- PPM (Portable Pixel Map): P3 (text) and P6 (binary)

All formats are decoded to RGB24. P1 and gray samples are scaled by
``255 // maxval`` and replicated to three channels, where P1 has an implicit
maxval of 1. P4 bits are inverted, 1 is black. RGB samples are copied
unscaled. Only maxval up to 255 is supported.

Binary samples start after the single whitespace character following the
header. If the data size does not match, the samples start on the line after
the header, which may end with whitespace or a comment.

The Netpbm formats are specified at http://netpbm.sourceforge.net/doc/.

"""

from __future__ import annotations

__all__ = [
    'decode_pixmap',
    'is_pixmap_file_name',
    'read_pixmap_header',
    'PixMapHeader',
    'PixMapFormat',
    'ParseMode',
]

import enum
from typing import NamedTuple

import numpy

from .bitmap import Bitmap, ImageDataError
from .cursor import (
    ByteCursor,
    file_has_extension,
    is_token_character,
    is_whitespace,
    parse_int32,
)


class PixMapFormat(enum.Enum):
    P1 = 'P1'
    P2 = 'P2'
    P3 = 'P3'
    P4 = 'P4'
    P5 = 'P5'
    P6 = 'P6'

    @property
    def bilevel(self) -> bool:
        """Samples are 1 bit without maxval in header."""
        return self in (PixMapFormat.P1, PixMapFormat.P4)

    @property
    def binary(self) -> bool:
        """Samples are stored as raw bytes."""
        return self in (PixMapFormat.P4, PixMapFormat.P5, PixMapFormat.P6)

    @property
    def depth(self) -> int:
        """Number of samples per pixel."""
        return 3 if self in (PixMapFormat.P3, PixMapFormat.P6) else 1


class ParseMode(enum.Enum):
    MAGIC = 0
    WIDTH = 1
    HEIGHT = 2
    MAX_VALUE = 3
    DATA = 4


class PixMapHeader(NamedTuple):
    """Netpbm file header."""

    magicnumber: PixMapFormat
    width: int
    height: int
    maxval: int


def is_pixmap_file_name(file_name, /) -> bool:
    """Return True if file name has PBM, PGM, or PPM extension."""
    return (
        file_has_extension(file_name, '.pbm')
        or file_has_extension(file_name, '.pgm')
        or file_has_extension(file_name, '.ppm')
    )


def read_pixmap_header(buffer: bytes, /) -> PixMapHeader:
    """Return Netpbm header parsed from start of buffer.

    Raises:
        ImageDataError: Header is incomplete or invalid.

    """
    return _read_header(ByteCursor(buffer))


def decode_pixmap(buffer: bytes, /) -> Bitmap:
    """Return RGB24 bitmap decoded from Netpbm file content.

    Raises:
        ImageDataError:
            Buffer is not a supported PBM, PGM, or PPM image, a sample
            exceeds maxval, or the number of samples does not match the
            image size.

    """
    cursor = ByteCursor(buffer)
    magicnumber, width, height, maxval = _read_header(cursor)
    size = width * height * 3

    if magicnumber.binary:
        data = _read_binary(cursor, magicnumber, width, height, maxval)
    else:
        samples = bytearray()
        while True:
            token = _next_token(cursor)
            if token is None:
                break
            _append_text_samples(samples, token, magicnumber, size, maxval)
        data = bytes(samples)

    if len(data) != size:
        raise ImageDataError(
            f'Netpbm data of {len(data)} bytes does not match '
            f'image size of {size} bytes'
        )
    return Bitmap(data, width, height, filtered=True)


def _next_token(cursor: ByteCursor, /) -> bytes | None:
    """Return next token, skipping whitespace and comments."""
    while True:
        cursor.skip_whitespace()
        if cursor.eof():
            return None
        if cursor.peek() == 35:  # '#'
            cursor.skip_line()
            continue
        return cursor.read_token()


def _read_header(cursor: ByteCursor, /) -> PixMapHeader:
    """Return Netpbm header and advance cursor to end of last header token."""
    mode = ParseMode.MAGIC
    magicnumber = PixMapFormat.P1
    width = 0
    height = 0
    maxval = 1

    while mode is not ParseMode.DATA:
        token = _next_token(cursor)
        if token is None:
            raise ImageDataError(
                f'incomplete Netpbm header in {mode.name} state'
            )
        if mode is ParseMode.MAGIC:
            magicnumber = _magicnumber(token)
            mode = ParseMode.WIDTH
        elif mode is ParseMode.WIDTH:
            width = _dimension(token, 'width')
            mode = ParseMode.HEIGHT
        elif mode is ParseMode.HEIGHT:
            height = _dimension(token, 'height')
            if magicnumber.bilevel:
                mode = ParseMode.DATA
            else:
                mode = ParseMode.MAX_VALUE
        else:
            assert mode is ParseMode.MAX_VALUE
            maxval = parse_int32(token)
            if not 0 < maxval <= 255:
                raise ImageDataError(f'maxval {maxval} out of range')
            mode = ParseMode.DATA

    return PixMapHeader(magicnumber, width, height, maxval)


def _magicnumber(token: bytes, /) -> PixMapFormat:
    """Return Netpbm format of magic number token."""
    if not all(is_token_character(byte) for byte in token):
        raise ImageDataError(f'invalid Netpbm token {token[:16]!r}')
    try:
        return PixMapFormat(token.decode('ascii'))
    except ValueError as exc:
        raise ImageDataError(
            f'invalid Netpbm magic number {token[:16]!r}'
        ) from exc


def _dimension(token: bytes, name: str, /) -> int:
    """Return image width or height parsed from token."""
    value = parse_int32(token)
    if value < 0:
        raise ImageDataError(f'Netpbm {name} {value} out of range')
    return value


def _append_text_samples(
    data: bytearray,
    token: bytes,
    magicnumber: PixMapFormat,
    size: int,
    maxval: int,
    /,
) -> None:
    """Append RGB bytes of ASCII sample token to data."""
    value = parse_int32(token)
    if not 0 <= value <= maxval:
        raise ImageDataError(f'sample {value} exceeds maxval {maxval}')

    if magicnumber in (PixMapFormat.P1, PixMapFormat.P2):
        # P1 samples are gray levels with implicit maxval 1
        if len(data) + 3 > size:
            raise ImageDataError('too many PBM or PGM samples')
        value *= 255 // maxval
        data.extend((value, value, value))
    else:
        assert magicnumber is PixMapFormat.P3
        if len(data) + 1 > size:
            raise ImageDataError('too many PPM samples')
        data.append(value)


def _skip_header_end(cursor: ByteCursor, expected: int, /) -> None:
    """Advance cursor from end of last header token to start of samples."""
    start = cursor.offset
    if cursor.eof() or not is_whitespace(cursor.read_byte()):
        raise ImageDataError('missing whitespace after Netpbm header')
    if cursor.remaining() == expected:
        return

    # header line may end with whitespace or a comment
    cursor.seek(start)
    while not cursor.eof():
        byte = cursor.peek()
        if byte in b'\r\n#':
            cursor.skip_line()
            return
        if not is_whitespace(byte):
            break
        cursor.skip(1)
    cursor.seek(start + 1)


def _read_binary(
    cursor: ByteCursor,
    magicnumber: PixMapFormat,
    width: int,
    height: int,
    maxval: int,
    /,
) -> bytes:
    """Return RGB bytes of binary sample block following header."""
    count = width * height
    if magicnumber is PixMapFormat.P4:
        expected = (count + 7) // 8
    else:
        expected = count * magicnumber.depth

    _skip_header_end(cursor, expected)
    if cursor.remaining() != expected:
        raise ImageDataError(
            f'Netpbm data of {cursor.remaining()} bytes does not match '
            f'expected size of {expected} bytes'
        )
    samples = numpy.frombuffer(cursor.read_rest(), dtype=numpy.uint8)

    if magicnumber is PixMapFormat.P4:
        # 1 is black
        bits = numpy.unpackbits(samples)[:count]
        gray = (1 - bits) * numpy.uint8(255)
        return numpy.repeat(gray, 3).tobytes()

    if samples.size and int(samples.max()) > maxval:
        raise ImageDataError(
            f'sample {int(samples.max())} exceeds maxval {maxval}'
        )
    if magicnumber is PixMapFormat.P5:
        gray = samples * numpy.uint8(255 // maxval)
        return numpy.repeat(gray, 3).tobytes()

    assert magicnumber is PixMapFormat.P6
    return samples.tobytes()
