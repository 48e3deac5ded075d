# rasterfile.py

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

"""Read PCX, TGA, and Netpbm files as RGB24 bitmaps.

Rasterfile is a Python library to decode image files in legacy raster
formats into one common RGB24 bitmap and to write that bitmap to TGA:

- PCX (ZSoft Paintbrush): RLE encoded, 8-bit, single plane, with or without
  256 color palette
- TGA (Truevision Targa): uncompressed 24-bit true color, top-to-bottom or
  bottom-to-top, read and write
- PBM, PGM, PPM (Netpbm PixMap): P1 to P6, maxval up to 255

All decoders validate the file content and raise ImageDataError on
truncated, malformed, or unsupported data. No partial images are returned.

Decoded bitmaps store red, green, and blue bytes in row-major order, top row
first. Palettes are resolved to RGB. Gray and bilevel samples are replicated
to the three color channels.

:Author: rasterfile developers
:License: BSD 3-Clause
:Version: 2023.8.30

Quickstart
----------

Install the rasterfile package and all dependencies from the
`Python Package Index <https://pypi.org/project/rasterfile/>`_::

    python -m pip install -U rasterfile[all]

See `Examples`_ for using the programming interface.

Requirements
------------

This release has been tested with the following requirements and dependencies
(other versions may work):

- `CPython 3.9.13, 3.10.11, 3.11.4 <https://www.python.org>`_
- `NumPy 1.25.2 <https://pypi.org/project/numpy/>`_
- `Matplotlib 3.7.2 <https://pypi.org/project/matplotlib/>`_
  (optional, for displaying images from the command line)

Revisions
---------

2023.8.30

- Initial release.
- Decode PCX, TGA, and Netpbm P1 to P6 files to RGB24 bitmaps.
- Encode RGB24 bitmaps to TGA.
- Reject right-to-left TGA and three-plane PCX images as unsupported.

Examples
--------

Write a numpy array to a TGA file:

>>> data = numpy.array(
...     [[[255, 0, 0], [0, 255, 0]], [[0, 0, 255], [255, 255, 255]]],
...     dtype=numpy.uint8,
... )
>>> imwrite('_tmp.tga', data)

Read the image data from a TGA file as numpy array:

>>> image = imread('_tmp.tga')
>>> numpy.testing.assert_equal(image, data)

Access the bitmap and header in a raster file:

>>> with RasterFile('_tmp.tga') as tga:
...     tga.format
...     tga.shape
...     tga.header.bits_per_pixel
...     tga.asbitmap()
'tga'
(2, 2, 3)
24
<Bitmap(2x2, filtered=True)>

Decode a Netpbm image from memory:

>>> decode_pixmap(b'P2\\n# gray\\n2 1 15\\n0 15\\n').pixel_buffer
b'\\x00\\x00\\x00\\xff\\xff\\xff'

View the images in raster files from the command line::

    $ python -m rasterfile _tmp.tga

"""

from __future__ import annotations

__version__ = '2023.8.30'

__all__ = [
    'imread',
    'imwrite',
    'RasterFile',
    'Bitmap',
    'ImageDataError',
    'decode_pcx',
    'decode_tga',
    'encode_tga',
    'decode_pixmap',
    'is_pcx_file_name',
    'is_tga_file_name',
    'is_pixmap_file_name',
    'MAX_DIMENSION',
]

import sys
import os

import numpy

from .bitmap import Bitmap, ImageDataError, log_warning
from .pcx import PCXVersion, decode_pcx, is_pcx_file_name, read_pcx_header
from .pixmap import decode_pixmap, is_pixmap_file_name, read_pixmap_header
from .tga import (
    MAX_DIMENSION,
    decode_tga,
    encode_tga,
    is_tga_file_name,
    read_tga_footer,
    read_tga_header,
)

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any, BinaryIO, Callable, Literal, Union

    try:
        from numpy.typing import ArrayLike
    except ImportError:
        # numpy < 1.20
        from numpy import ndarray as ArrayLike

    PathLike = Union[str, os.PathLike]
    FormatName = Union[Literal['pcx'], Literal['tga'], Literal['pixmap']]


def imread(
    file: PathLike | BinaryIO, /, *, format: FormatName | None = None
) -> numpy.ndarray:
    """Return RGB24 image data from PCX, TGA, or Netpbm file.

    Parameters:
        file:
            Name of file or open binary file to read.
        format:
            Format of file content.
            By default, this is determined from the file name extension.

    """
    with RasterFile(file, format=format) as raster:
        image = raster.asarray()
    return image


def imwrite(file: PathLike | BinaryIO, data: Bitmap | ArrayLike, /) -> None:
    """Write RGB24 image data to TGA file.

    Parameters:
        file:
            Name of file or open binary file to write.
        data:
            Bitmap or image data of shape (height, width, 3) or
            (height, width) with values in range 0 to 255.

    """
    bitmap = data if isinstance(data, Bitmap) else Bitmap.fromarray(data)
    content = encode_tga(bitmap)
    if isinstance(file, (str, os.PathLike)):
        if not is_tga_file_name(file):
            log_warning(f'writing TGA to {os.fspath(file)!r}')
        with open(file, 'wb') as fh:
            fh.write(content)
    else:
        assert hasattr(file, 'write')
        file.write(content)


class RasterFile:
    """Read PCX, TGA, or Netpbm file.

    The whole file is read and decoded when the instance is created.

    Parameters:
        file:
            Name of file or open binary file to read.
        format:
            Format of file content: 'pcx', 'tga', or 'pixmap'.
            By default, this is determined from the file name extension.
            Required for open files without name.

    """

    filename: str
    """File name."""

    format: str
    """Format of file content."""

    header: Any
    """File header: PCXHeader, TGAHeader, or PixMapHeader."""

    footer: Any
    """TGA 2.0 footer if present."""

    width: int
    """Number of columns in image."""

    height: int
    """Number of rows in image."""

    _bitmap: Bitmap
    _fh: BinaryIO | None

    FORMATS: dict[
        str, tuple[Callable[[Any], bool], Callable[[bytes], Bitmap]]
    ] = {
        'pcx': (is_pcx_file_name, decode_pcx),
        'tga': (is_tga_file_name, decode_tga),
        'pixmap': (is_pixmap_file_name, decode_pixmap),
    }

    def __init__(
        self,
        file: PathLike | BinaryIO,
        /,
        *,
        format: FormatName | None = None,
    ) -> None:
        self.filename = ''
        self.format = ''
        self.header = None
        self.footer = None
        self.width = 0
        self.height = 0
        self._fh = None

        if isinstance(file, (str, os.PathLike)):
            self._fh = open(file, 'rb')
            self.filename = os.fspath(file)
        else:
            self._fh = file

        try:
            self.format = self._select_format(format, file)
            self._fh.seek(0)
            data = self._fh.read()
            decode = RasterFile.FORMATS[self.format][1]
            self._bitmap = decode(data)
            self._read_metadata(data)
        except Exception:
            self.close()
            raise

        self.width = self._bitmap.width
        self.height = self._bitmap.height

    def _select_format(self, format: str | None, file: Any, /) -> str:
        """Return name of decoder for file."""
        name = self.filename or getattr(file, 'name', None)
        if not isinstance(name, (str, bytes)):
            name = None
        if format is not None:
            if format not in RasterFile.FORMATS:
                raise ValueError(f'invalid format {format!r}')
            if name and not RasterFile.FORMATS[format][0](name):
                log_warning(f'reading {name!r} as {format!r} file')
            return format
        if not name:
            raise ValueError('format must be specified for unnamed files')
        for key, (is_file_name, _) in RasterFile.FORMATS.items():
            if is_file_name(name):
                return key
        raise ValueError(f'unknown file extension {name!r}')

    def _read_metadata(self, data: bytes, /) -> None:
        """Set header and footer from validated file content."""
        if self.format == 'pcx':
            self.header = read_pcx_header(data)
        elif self.format == 'tga':
            self.header = read_tga_header(data)
            self.footer = read_tga_footer(data)
        else:
            assert self.format == 'pixmap'
            self.header = read_pixmap_header(data)

    def asbitmap(self) -> Bitmap:
        """Return decoded RGB24 bitmap."""
        return self._bitmap

    def asarray(self, *, copy: bool = True) -> numpy.ndarray:
        """Return image array of shape (height, width, 3).

        Parameters:
            copy:
                Return a writable copy of image array.
                Else, return read-only view of bitmap.

        """
        data = self._bitmap.asarray()
        return numpy.copy(data) if copy else data

    def close(self) -> None:
        """Close open file."""
        if self.filename and self._fh is not None:
            self._fh.close()
            self._fh = None

    @property
    def shape(self) -> tuple[int, int, int]:
        """Shape of image array."""
        return (self.height, self.width, 3)

    def __enter__(self) -> RasterFile:
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self) -> str:
        if self.filename:
            arg = f'{os.path.split(os.path.normcase(self.filename))[-1]!r}'
        elif self._fh is not None:
            arg = str(type(self._fh).__name__)
        else:
            arg = ''
        return f'<{self.__class__.__name__}({arg})>'

    def __str__(self) -> str:
        if self.format == 'pcx':
            palette = self.header.version == PCXVersion.PC_PAINTBRUSH_3
            info = [f'version: {self.header.version}', f'palette: {palette}']
        elif self.format == 'tga':
            info = [
                f'top-to-bottom: {self.header.top_to_bottom}',
                f'footer: {self.footer is not None}',
            ]
        else:
            info = [
                f'magicnumber: {self.header.magicnumber.value}',
                f'maxval: {self.header.maxval}',
            ]
        return indent(
            repr(self),
            f'format: {self.format}',
            f'shape: {self.shape}',
            *info,
        )


def indent(*args) -> str:
    """Return joined string representations of objects with indented lines."""
    text = '\n'.join(str(arg) for arg in args)
    return '\n'.join(
        ('  ' + line if line else line) for line in text.splitlines() if line
    )[2:]


def main(argv: list[str] | None = None) -> int:
    """Command line usage main function.

    Show images specified on command line or all images in directory.

    """
    from glob import glob
    from matplotlib import pyplot

    if argv is None:
        argv = sys.argv

    if len(argv) > 1 and '--doctest' in argv:
        import doctest

        doctest.testmod()
        return 0

    patterns = ('*.pcx', '*.tga', '*.p[bgp]m')
    if len(argv) == 1:
        files = [f for pattern in patterns for f in glob(pattern)]
    elif '*' in argv[1]:
        files = glob(argv[1])
    elif os.path.isdir(argv[1]):
        files = [
            f
            for pattern in patterns
            for f in glob(os.path.join(argv[1], pattern))
        ]
    else:
        files = argv[1:]

    for fname in files:
        try:
            with RasterFile(fname) as raster:
                print(raster)
                img = raster.asarray(copy=False)
                print()
        except ValueError as exc:
            # raise  # enable for debugging
            print(fname, exc)
            continue

        title = f'{os.path.split(fname)[-1]} {raster.format} {img.shape}'
        pyplot.imshow(img, interpolation='nearest')
        pyplot.title(title)
        pyplot.show()
    return 0


if __name__ == '__main__':
    sys.exit(main())
