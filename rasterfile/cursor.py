# cursor.py

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

"""Bounds-checked scanning of binary and text image buffers."""

from __future__ import annotations

__all__ = [
    'ByteCursor',
    'WHITESPACE',
    'INT32_MAX',
    'is_whitespace',
    'is_digit',
    'is_token_character',
    'parse_int32',
    'file_has_extension',
]

import os
import struct

from .bitmap import ImageDataError

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Union

    PathLike = Union[str, bytes, os.PathLike]

WHITESPACE = b' \t\n\v\f\r'
INT32_MAX = 2**31 - 1


def is_whitespace(byte: int, /) -> bool:
    """Return True if byte is ASCII whitespace."""
    return byte in WHITESPACE


def is_digit(byte: int, /) -> bool:
    """Return True if byte is ASCII decimal digit."""
    return 48 <= byte <= 57


def is_token_character(byte: int, /) -> bool:
    """Return True if byte may appear in header token."""
    return (
        48 <= byte <= 57
        or 65 <= byte <= 90
        or 97 <= byte <= 122
        or byte == 35  # '#'
    )


def parse_int32(token: bytes, /) -> int:
    """Return value of decimal integer token.

    A leading minus sign is accepted. Values that do not fit in a signed
    32-bit integer are rejected.

    Parameters:
        token:
            ASCII bytes without surrounding whitespace.

    Raises:
        ImageDataError: Token is empty, contains non-digits, or overflows.

    """
    negate = token[:1] == b'-'
    digits = token[1:] if negate else token
    if not digits:
        raise ImageDataError(f'invalid integer token {token[:16]!r}')
    result = 0
    for byte in digits:
        if not is_digit(byte):
            raise ImageDataError(f'invalid integer token {token[:16]!r}')
        digit = byte - 48
        if result > (INT32_MAX - digit) // 10:
            raise ImageDataError(f'integer token {token[:16]!r} overflows')
        result = result * 10 + digit
    return -result if negate else result


def file_has_extension(file_name: PathLike, extension: str, /) -> bool:
    """Return True if file name ends with extension.

    ASCII letters are compared case-insensitively. All other bytes,
    including UTF-8 encoded non-ASCII characters, must match exactly.

    """
    name = os.fsencode(file_name)
    ext = extension.encode('utf-8')
    # bytes.lower only folds ASCII letters
    return len(name) >= len(ext) and name[-len(ext) :].lower() == ext.lower()


class ByteCursor:
    """Read position in bounded view of immutable buffer.

    All reads are checked against the view's end. Reading past the end
    raises ImageDataError instead of returning short data.

    Parameters:
        data:
            Buffer to scan.
        start:
            Position of first byte in view.
        end:
            Position after last byte in view.
            By default, the view extends to the end of the buffer.

    """

    data: bytes
    """Underlying buffer."""

    offset: int
    """Current read position in buffer."""

    start: int
    """Position of first byte in view."""

    end: int
    """Position after last readable byte."""

    __slots__ = ('data', 'offset', 'start', 'end')

    def __init__(
        self, data: bytes, /, start: int = 0, end: int | None = None
    ) -> None:
        if not isinstance(data, bytes):
            data = bytes(data)
        if end is None:
            end = len(data)
        if not 0 <= start <= end <= len(data):
            raise ImageDataError(
                f'view [{start}:{end}] out of buffer of size {len(data)}'
            )
        self.data = data
        self.offset = start
        self.start = start
        self.end = end

    def remaining(self) -> int:
        """Return number of bytes left in view."""
        return self.end - self.offset

    def eof(self) -> bool:
        """Return True if no bytes are left in view."""
        return self.offset >= self.end

    def seek(self, offset: int, /) -> None:
        """Move read position to absolute offset within view."""
        if not self.start <= offset <= self.end:
            raise ImageDataError(f'seek to {offset} out of view')
        self.offset = offset

    def skip(self, size: int, /) -> None:
        """Advance read position by size bytes."""
        if size < 0 or size > self.remaining():
            raise ImageDataError(f'cannot skip {size} bytes')
        self.offset += size

    def peek(self) -> int:
        """Return next byte without consuming it."""
        if self.offset >= self.end:
            raise ImageDataError('unexpected end of data')
        return self.data[self.offset]

    def read_byte(self) -> int:
        """Return and consume next byte."""
        value = self.peek()
        self.offset += 1
        return value

    def read(self, size: int, /) -> bytes:
        """Return and consume next size bytes."""
        if size < 0 or size > self.remaining():
            raise ImageDataError(
                f'cannot read {size} bytes, {self.remaining()} remaining'
            )
        data = self.data[self.offset : self.offset + size]
        self.offset += size
        return data

    def read_rest(self) -> bytes:
        """Return and consume all bytes left in view."""
        return self.read(self.remaining())

    def unpack(self, fmt: str, /) -> tuple:
        """Return and consume fixed-size record."""
        size = struct.calcsize(fmt)
        if size > self.remaining():
            raise ImageDataError(
                f'record of {size} bytes exceeds {self.remaining()} remaining'
            )
        fields = struct.unpack_from(fmt, self.data, self.offset)
        self.offset += size
        return fields

    def view(self, size: int, /) -> ByteCursor:
        """Return cursor over next size bytes and consume them."""
        if size < 0 or size > self.remaining():
            raise ImageDataError(
                f'view of {size} bytes exceeds {self.remaining()} remaining'
            )
        cursor = ByteCursor(self.data, self.offset, self.offset + size)
        self.offset += size
        return cursor

    def skip_whitespace(self) -> None:
        """Advance read position past ASCII whitespace."""
        data = self.data
        offset = self.offset
        while offset < self.end and data[offset] in WHITESPACE:
            offset += 1
        self.offset = offset

    def skip_line(self) -> None:
        """Advance read position past next line break or to end of view."""
        data = self.data
        offset = self.offset
        while offset < self.end and data[offset] not in b'\r\n':
            offset += 1
        if offset < self.end:
            if data[offset] == 13 and offset + 1 < self.end:
                offset += 1 if data[offset + 1] == 10 else 0
            offset += 1
        self.offset = offset

    def read_token(self) -> bytes:
        """Return and consume bytes up to next whitespace or end of view."""
        data = self.data
        start = offset = self.offset
        while offset < self.end and data[offset] not in WHITESPACE:
            offset += 1
        self.offset = offset
        return data[start:offset]

    def __len__(self) -> int:
        return self.end - self.offset

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__}({self.offset}:{self.end})>'
