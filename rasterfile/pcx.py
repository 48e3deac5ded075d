# pcx.py

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

"""Decode ZSoft PCX images.

Only RLE encoded, 8 bits per pixel, single plane images are decoded.
Images written by PC Paintbrush 3.0 and later carry a 256 color VGA palette
at the end of the file, which is resolved to RGB.

The PCX format is described at http://www.fileformat.info/format/pcx/egff.htm.

"""

from __future__ import annotations

__all__ = [
    'decode_pcx',
    'is_pcx_file_name',
    'read_pcx_header',
    'rle_decode',
    'PCXHeader',
    'PCXManufacturer',
    'PCXVersion',
    'PCXEncoding',
    'PCXPlanes',
]

import enum
from typing import NamedTuple

import numpy

from .bitmap import Bitmap, ImageDataError
from .cursor import ByteCursor, file_has_extension

PCX_HEADER_SIZE = 128
PCX_HEADER_FORMAT = '<BBBBHHHHHH48sBBHHHH54s'
PALETTE_SIZE = 256 * 3
PALETTE_MARKER = 0x0C


class PCXManufacturer(enum.IntEnum):
    ZSOFT = 10


class PCXVersion(enum.IntEnum):
    PC_PAINTBRUSH_2_5 = 0
    PC_PAINTBRUSH_2_8_PALETTE = 2
    PC_PAINTBRUSH_2_8 = 3
    PC_PAINTBRUSH_WINDOWS = 4
    PC_PAINTBRUSH_3 = 5


class PCXEncoding(enum.IntEnum):
    RLE = 1


class PCXPlanes(enum.IntEnum):
    PALETTE_OR_GRAYSCALE = 1
    RGB = 3


class PCXHeader(NamedTuple):
    """PCX file header."""

    manufacturer: int
    version: int
    encoding: int
    bits_per_pixel: int
    min_x: int
    min_y: int
    max_x: int
    max_y: int
    horizontal_dpi: int
    vertical_dpi: int
    color_map: bytes
    reserved: int
    color_plane_count: int
    bytes_per_line: int
    palette_info: int
    horizontal_screen_size: int
    vertical_screen_size: int
    filler: bytes

    @property
    def width(self) -> int:
        """Number of columns in image."""
        return self.max_x - self.min_x + 1

    @property
    def height(self) -> int:
        """Number of rows in image."""
        return self.max_y - self.min_y + 1


def is_pcx_file_name(file_name, /) -> bool:
    """Return True if file name has PCX extension."""
    return file_has_extension(file_name, '.pcx')


def read_pcx_header(buffer: bytes, /) -> PCXHeader:
    """Return validated PCX header from start of buffer.

    Raises:
        ImageDataError: Buffer is too short or header is invalid.

    """
    cursor = ByteCursor(buffer)
    if cursor.remaining() < PCX_HEADER_SIZE:
        raise ImageDataError(
            f'PCX data of {cursor.remaining()} bytes shorter than header'
        )
    header = PCXHeader._make(cursor.unpack(PCX_HEADER_FORMAT))
    validate_pcx_header(header)
    return header


def validate_pcx_header(header: PCXHeader, /) -> None:
    """Raise ImageDataError if PCX header is not supported."""
    if header.manufacturer != PCXManufacturer.ZSOFT:
        raise ImageDataError(f'invalid PCX manufacturer {header.manufacturer}')
    if header.encoding != PCXEncoding.RLE:
        raise ImageDataError(f'invalid PCX encoding {header.encoding}')
    if not header.min_x < header.max_x:
        raise ImageDataError(
            f'invalid PCX extent min_x={header.min_x} max_x={header.max_x}'
        )
    if not header.min_y < header.max_y:
        raise ImageDataError(
            f'invalid PCX extent min_y={header.min_y} max_y={header.max_y}'
        )
    if header.color_plane_count not in list(PCXPlanes):
        raise ImageDataError(
            f'invalid PCX color plane count {header.color_plane_count}'
        )
    if header.bits_per_pixel != 8:
        raise ImageDataError(
            f'PCX bits per pixel {header.bits_per_pixel} not supported'
        )


def rle_decode(stream: ByteCursor | bytes, size: int, /) -> bytes:
    """Return PCX run-length decoded data.

    Bytes with the two high bits set are run counts for the following byte.
    All other bytes are literal.

    Parameters:
        stream:
            Encoded data.
        size:
            Exact number of bytes to decode.

    Raises:
        ImageDataError:
            The stream ends before `size` bytes are decoded or a run
            extends past `size`.

    """
    if not isinstance(stream, ByteCursor):
        stream = ByteCursor(stream)
    output = bytearray(size)
    pos = 0
    while pos < size:
        if stream.eof():
            raise ImageDataError(
                f'PCX data ends after {pos} of {size} decoded bytes'
            )
        value = stream.read_byte()
        run = 1
        if value >= 192:
            run = value - 192
            if stream.eof():
                raise ImageDataError('PCX run count at end of data')
            value = stream.read_byte()
        if run > size - pos:
            raise ImageDataError(
                f'PCX run of {run} at {pos} exceeds {size} decoded bytes'
            )
        output[pos : pos + run] = bytes((value,)) * run
        pos += run
    return bytes(output)


def decode_pcx(buffer: bytes, /) -> Bitmap:
    """Return RGB24 bitmap decoded from PCX file content.

    Raises:
        ImageDataError: Buffer is not a supported PCX image.

    """
    if not isinstance(buffer, bytes):
        buffer = bytes(buffer)
    header = read_pcx_header(buffer)

    planes = PCXPlanes(header.color_plane_count)
    if planes is PCXPlanes.RGB:
        raise ImageDataError('PCX with 3 color planes not supported')
    assert planes is PCXPlanes.PALETTE_OR_GRAYSCALE

    palette = None
    stream_end = len(buffer)
    if header.version == PCXVersion.PC_PAINTBRUSH_3:
        if len(buffer) < PCX_HEADER_SIZE + PALETTE_SIZE + 1:
            raise ImageDataError('PCX data too short for palette')
        if buffer[-PALETTE_SIZE - 1] != PALETTE_MARKER:
            raise ImageDataError(
                f'invalid PCX palette marker {buffer[-PALETTE_SIZE - 1]}'
            )
        palette = numpy.frombuffer(
            buffer,
            dtype=numpy.uint8,
            count=PALETTE_SIZE,
            offset=len(buffer) - PALETTE_SIZE,
        ).reshape(256, 3)
        stream_end -= PALETTE_SIZE + 1

    width = header.width
    height = header.height
    stream = ByteCursor(buffer, PCX_HEADER_SIZE, stream_end)

    if palette is None:
        pixel_buffer = rle_decode(stream, width * height * 3)
    else:
        indices = rle_decode(stream, width * height)
        pixel_buffer = numpy.take(
            palette, numpy.frombuffer(indices, dtype=numpy.uint8), axis=0
        ).tobytes()

    return Bitmap(pixel_buffer, width, height, filtered=True)
