# tga.py

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

"""Decode and encode Truevision TGA images.

Only uncompressed, 24 bits per pixel, true color images without color map
are supported. Pixel bytes are copied verbatim.

The TGA format is described at
http://www.dca.fee.unicamp.br/~martino/disciplinas/ea978/tgaffs.pdf.

"""

from __future__ import annotations

__all__ = [
    'decode_tga',
    'encode_tga',
    'is_tga_file_name',
    'read_tga_header',
    'read_tga_footer',
    'TGAHeader',
    'TGAFooter',
    'TGAColorMap',
    'TGAImageType',
    'MAX_DIMENSION',
]

import enum
import struct
from typing import NamedTuple

import numpy

from .bitmap import Bitmap, ImageDataError, log_debug
from .cursor import ByteCursor, file_has_extension

MAX_DIMENSION = 16384
TGA_HEADER_SIZE = 18
TGA_HEADER_FORMAT = '<BBBHHBHHHHBB'
TGA_FOOTER_SIZE = 26
TGA_FOOTER_FORMAT = '<II18s'
TGA_SIGNATURE = b'TRUEVISION-XFILE.\x00'

RIGHT_TO_LEFT = 0x10
TOP_TO_BOTTOM = 0x20


class TGAColorMap(enum.IntEnum):
    NO_COLOR_MAP = 0
    COLOR_MAP = 1


class TGAImageType(enum.IntEnum):
    NO_IMAGE_DATA = 0
    COLOR_MAPPED = 1
    TRUE_COLOR = 2
    BLACK_AND_WHITE = 3
    RLE_COLOR_MAPPED = 9
    RLE_TRUE_COLOR = 10
    RLE_BLACK_AND_WHITE = 11


class TGAHeader(NamedTuple):
    """TGA file header."""

    id_length: int
    color_map_type: int
    image_type: int
    color_map_first_index: int
    color_map_length: int
    color_map_bits_per_pixel: int
    x_origin: int
    y_origin: int
    image_width: int
    image_height: int
    bits_per_pixel: int
    image_descriptor: int

    @property
    def left_to_right(self) -> bool:
        return not self.image_descriptor & RIGHT_TO_LEFT

    @property
    def top_to_bottom(self) -> bool:
        return bool(self.image_descriptor & TOP_TO_BOTTOM)

    @property
    def pixel_data_offset(self) -> int:
        """Position of pixel data in file."""
        return (
            TGA_HEADER_SIZE
            + self.id_length
            + self.color_map_length * (self.color_map_bits_per_pixel // 8)
        )


class TGAFooter(NamedTuple):
    """TGA 2.0 file footer."""

    extension_area_offset: int
    developer_directory_offset: int
    signature: bytes


def is_tga_file_name(file_name, /) -> bool:
    """Return True if file name has TGA extension."""
    return file_has_extension(file_name, '.tga')


def read_tga_header(buffer: bytes, /) -> TGAHeader:
    """Return validated TGA header from start of buffer.

    Raises:
        ImageDataError: Buffer is too short or image type is not supported.

    """
    cursor = ByteCursor(buffer)
    if cursor.remaining() < TGA_HEADER_SIZE:
        raise ImageDataError(
            f'TGA data of {cursor.remaining()} bytes shorter than header'
        )
    header = TGAHeader._make(cursor.unpack(TGA_HEADER_FORMAT))
    validate_tga_header(header)
    return header


def validate_tga_header(header: TGAHeader, /) -> None:
    """Raise ImageDataError if TGA header is not supported."""
    errors = []
    if header.image_type != TGAImageType.TRUE_COLOR:
        errors.append(f'image type {header.image_type}')
    if header.bits_per_pixel != 24:
        errors.append(f'bits per pixel {header.bits_per_pixel}')
    if header.color_map_length != 0 or header.color_map_bits_per_pixel != 0:
        errors.append('color map')
    if not header.left_to_right:
        errors.append('right-to-left pixel order')
    # bounded since used in buffer size calculations
    if header.image_width > MAX_DIMENSION:
        errors.append(f'width {header.image_width}')
    if header.image_height > MAX_DIMENSION:
        errors.append(f'height {header.image_height}')
    if errors:
        raise ImageDataError(f'TGA {", ".join(errors)} not supported')


def read_tga_footer(buffer: bytes, /) -> TGAFooter | None:
    """Return TGA 2.0 footer or None if buffer has no footer."""
    if len(buffer) < TGA_HEADER_SIZE + TGA_FOOTER_SIZE:
        return None
    cursor = ByteCursor(buffer, len(buffer) - TGA_FOOTER_SIZE)
    footer = TGAFooter._make(cursor.unpack(TGA_FOOTER_FORMAT))
    if footer.signature != TGA_SIGNATURE:
        return None
    return footer


def decode_tga(buffer: bytes, /) -> Bitmap:
    """Return RGB24 bitmap decoded from TGA file content.

    Bottom-to-top images are flipped to top-to-bottom row order.

    Raises:
        ImageDataError: Buffer is not a supported TGA image.

    """
    if not isinstance(buffer, bytes):
        buffer = bytes(buffer)
    header = read_tga_header(buffer)

    width = header.image_width
    height = header.image_height
    offset = header.pixel_data_offset
    size = width * height * 3
    if offset > len(buffer) or size > len(buffer) - offset:
        raise ImageDataError(
            f'TGA pixel data of {size} bytes at {offset} '
            f'exceeds data of {len(buffer)} bytes'
        )
    pixels = ByteCursor(buffer, offset).read(size)

    if not header.top_to_bottom:
        log_debug(
            'copying TGA image bottom to top. '
            'Use content encoded top to bottom for best performance'
        )
        pixels = (
            numpy.frombuffer(pixels, dtype=numpy.uint8)
            .reshape(height, width * 3)[::-1]
            .tobytes()
        )

    return Bitmap(pixels, width, height, filtered=True)


def encode_tga(bitmap: Bitmap, /) -> bytes:
    """Return TGA file content of top-to-bottom, 24-bit true color image.

    Raises:
        ImageDataError: Bitmap dimensions exceed MAX_DIMENSION.

    """
    if bitmap.width > MAX_DIMENSION or bitmap.height > MAX_DIMENSION:
        raise ImageDataError(
            f'TGA dimensions {bitmap.width}x{bitmap.height} '
            f'exceed {MAX_DIMENSION}'
        )
    header = struct.pack(
        TGA_HEADER_FORMAT,
        0,  # id_length
        TGAColorMap.NO_COLOR_MAP,
        TGAImageType.TRUE_COLOR,
        0,  # color_map_first_index
        0,  # color_map_length
        0,  # color_map_bits_per_pixel
        0,  # x_origin
        0,  # y_origin
        bitmap.width,
        bitmap.height,
        24,  # bits_per_pixel
        TOP_TO_BOTTOM,
    )
    return header + bitmap.pixel_buffer
