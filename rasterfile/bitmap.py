# bitmap.py

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

"""Canonical RGB24 bitmap shared by all decoders."""

from __future__ import annotations

__all__ = ['Bitmap', 'ImageDataError']

import numpy

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    try:
        from numpy.typing import ArrayLike
    except ImportError:
        # numpy < 1.20
        from numpy import ndarray as ArrayLike


class ImageDataError(ValueError):
    """Image data is invalid.

    Raised by all decoders for truncated, malformed, or unsupported input.

    """

    def __init__(self, msg: str = 'image data is invalid', /) -> None:
        super().__init__(msg)


class Bitmap:
    """Decoded RGB24 image.

    Parameters:
        pixel_buffer:
            Densely packed red, green, blue bytes, row-major, top row first.
            Must contain exactly `width * height * 3` bytes.
        width:
            Number of columns in image.
        height:
            Number of rows in image.
        filtered:
            Flag passed through to image processing functions.

    """

    pixel_buffer: bytes
    """RGB samples, top row first."""

    width: int
    """Number of columns in image."""

    height: int
    """Number of rows in image."""

    filtered: bool
    """Flag for downstream processing. Ignored by equality."""

    __slots__ = ('pixel_buffer', 'width', 'height', 'filtered')

    def __init__(
        self,
        pixel_buffer: bytes,
        width: int,
        height: int,
        /,
        *,
        filtered: bool = True,
    ) -> None:
        self.pixel_buffer = bytes(pixel_buffer)
        self.width = int(width)
        self.height = int(height)
        self.filtered = bool(filtered)

    @classmethod
    def fromarray(cls, data: ArrayLike, /, *, filtered: bool = True) -> Bitmap:
        """Return Bitmap initialized from array.

        Parameters:
            data:
                Image data of shape (height, width, 3) or (height, width).
                Grayscale data is replicated to the three color channels.
                Values must be in range 0 to 255.
            filtered:
                Flag passed through to image processing functions.

        """
        data = numpy.asarray(data)
        if data.ndim == 2:
            data = numpy.stack((data, data, data), axis=-1)
        if data.ndim != 3 or data.shape[-1] != 3:
            raise ValueError(f'shape {data.shape} not supported')
        if data.dtype.kind not in 'uib':
            raise ValueError(f'dtype {data.dtype!r} not supported')
        if data.size and (numpy.min(data) < 0 or numpy.max(data) > 255):
            raise ValueError('data values out of range 0 to 255')
        height, width = data.shape[:2]
        return cls(
            numpy.ascontiguousarray(data, dtype=numpy.uint8).tobytes(),
            width,
            height,
            filtered=filtered,
        )

    def asarray(self) -> numpy.ndarray:
        """Return read-only array view of pixel buffer."""
        return numpy.frombuffer(self.pixel_buffer, dtype=numpy.uint8).reshape(
            self.shape
        )

    @property
    def shape(self) -> tuple[int, int, int]:
        """Shape of image array."""
        return (self.height, self.width, 3)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bitmap):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.pixel_buffer == other.pixel_buffer
        )

    __hash__ = None  # type: ignore

    def __repr__(self) -> str:
        return (
            f'<{self.__class__.__name__}({self.width}x{self.height}, '
            f'filtered={self.filtered})>'
        )


def log_warning(msg, *args, **kwargs):
    """Log message with level WARNING."""
    import logging

    logging.getLogger('rasterfile').warning(msg, *args, **kwargs)


def log_debug(msg, *args, **kwargs):
    """Log message with level DEBUG."""
    import logging

    logging.getLogger('rasterfile').debug(msg, *args, **kwargs)
