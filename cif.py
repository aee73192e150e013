# CIF (Custom Image Format), text/x.cif
# A sparse, diffable text image format: each color is stored once, followed by
# the ids of every pixel with that color. Recoloring an image is a matter of
# editing one row.
#
# Format (CSV, one row per line):
#   Header: <height>,<width>,<compressed>,<checksum>,<number of colors>
#     compressed is 1 if the rows use ranges, else 0
#     checksum is height*width, the number of pixels
#     number of colors counts the header row too (so color rows + 1)
#   Then one row per color; see cifrow for the layout.
#   Pixel ids are row-major, id = y * width + x; see cifcoords.
#
# There is no attempt at being small. Use a real image format like PNG if you
# need that.
#
# Copyright 2023 Philip Boulain.
# Licensed under the EUPL-1.2-or-later.

import csv
import io
import logging
import typing
from PIL import Image

import cifcoords
import cifrow
from cifrow import Color, Row
from cifstore import Cif

_VALUE_SEPARATOR = ','
_COMPRESSED_FLAG = '1'
_UNCOMPRESSED_FLAG = '0'

class Header(typing.NamedTuple):
    height: int
    width: int
    compressed: bool
    checksum: int
    number_of_colors: typing.Optional[int]

def header_row(cif: Cif, compressed: bool, color_rows: int) -> Row:
    return [
        str(cif.height),
        str(cif.width),
        _COMPRESSED_FLAG if compressed else _UNCOMPRESSED_FLAG,
        str(cif.checksum),
        str(color_rows + 1),
    ]

def parse_header(row: Row) -> typing.Optional[Header]:
    if len(row) < 4:
        return None
    try:
        height = int(row[0])
        width = int(row[1])
        checksum = int(row[3])
    except ValueError:
        return None
    if height < 0 or width < 0:
        return None
    if checksum != cifcoords.checksum(width, height):
        logging.warning(
            f'Header checksum {checksum} does not match {width}x{height};'
            ' ignoring it')
        checksum = cifcoords.checksum(width, height)
    number_of_colors: typing.Optional[int]
    try:
        number_of_colors = int(row[4])
    except (IndexError, ValueError):
        number_of_colors = None
    return Header(height, width, row[2].strip() == _COMPRESSED_FLAG,
                  checksum, number_of_colors)

def cif_from_image(image: Image.Image) -> Cif:
    """Index every pixel of an image by color. Always uncompressed."""
    rgba = image if image.mode == 'RGBA' else image.convert('RGBA')
    pixels = rgba.load()
    buckets: typing.Dict[Color, typing.List[int]] = {}
    for y in range(0, rgba.height):
        for x in range(0, rgba.width):
            color = pixels[x, y]
            buckets.setdefault(color, []).append(
                cifcoords.to_id(x, y, rgba.width))
    if rgba is not image:
        rgba.close()
    return Cif(image.width, image.height, False, buckets)

def encode_rows(cif: Cif, compressed: bool) -> typing.List[Row]:
    """Serialize the color rows of a Cif, skipping emptied buckets."""
    return [cifrow.serialize_row(color, ids, compressed)
            for color, ids in cif.image.items() if ids]

def decode_rows(rows: typing.Iterable[Row], width: int, height: int,
                compressed: bool = False) -> Cif:
    """Build a Cif from color rows, dropping any that don't parse.

    Repeated colors are merged into one bucket.
    """
    cif = Cif(width, height, compressed)
    dropped = 0
    for row in rows:
        if not row:
            continue  # Blank line.
        data = cifrow.parse_row(row, cif.checksum)
        if data is None:
            dropped += 1
            continue
        cif.add(data.color, data.coordinates)
    if dropped:
        logging.warning(f'Dropped {dropped} malformed rows')
    cif.number_of_colors = len(cif.image)
    return cif

def write_cif_stream(cif: Cif, out: typing.TextIO,
                     compressed: typing.Optional[bool] = None) -> None:
    if compressed is None:
        compressed = cif.compressed
    rows = encode_rows(cif, compressed)
    writer = csv.writer(out, delimiter=_VALUE_SEPARATOR, lineterminator='\n')
    writer.writerow(header_row(cif, compressed, len(rows)))
    writer.writerows(rows)

def encode_stream(image: Image.Image, out: typing.TextIO,
                  compressed: bool = False) -> None:
    write_cif_stream(cif_from_image(image), out, compressed)

def encode(image: Image.Image, compressed: bool = False) -> str:
    buf = io.StringIO()
    encode_stream(image, buf, compressed)
    return buf.getvalue()

def decode_stream(cif_file: typing.TextIO, width: typing.Optional[int] = None,
                  height: typing.Optional[int] = None) -> Cif:
    """Read a Cif from a text stream.

    Dimensions come from the header unless both width and height are given,
    in which case a file without a header is acceptable too.
    """
    rows = [row for row in csv.reader(cif_file, delimiter=_VALUE_SEPARATOR)
            if row]
    header = parse_header(rows[0]) if rows else None
    compressed = False
    if header is not None:
        rows = rows[1:]
        compressed = header.compressed
        if width is None or height is None:
            width, height = header.width, header.height
    elif width is None or height is None:
        raise ValueError("Missing or malformed CIF header")
    cif = decode_rows(rows, width, height, compressed)
    if header is not None and header.number_of_colors is not None:
        if header.number_of_colors != len(rows) + 1:
            logging.warning(
                f'Header claims {header.number_of_colors - 1} colors,'
                f' file has {len(rows)} rows')
    return cif

def decode(text: str, width: typing.Optional[int] = None,
           height: typing.Optional[int] = None) -> Cif:
    return decode_stream(io.StringIO(text), width, height)

def load_cif(path: str) -> Cif:
    with open(path, newline='') as cif_file:
        return decode_stream(cif_file)

def cif_file_to_image(path: str, width: typing.Optional[int] = None,
                      height: typing.Optional[int] = None) -> Image.Image:
    with open(path, newline='') as cif_file:
        cif = decode_stream(cif_file, width, height)
    return cif.render()

def load_image_from_cif(path: str) -> Image.Image:
    return cif_file_to_image(path)

def save_cif(cif: Cif, path: str,
             compressed: typing.Optional[bool] = None) -> None:
    with open(path, 'w', newline='') as cif_file:
        write_cif_stream(cif, cif_file, compressed)

def image_to_cif_file(image: Image.Image, path: str,
                      compressed: bool = False) -> None:
    with open(path, 'w', newline='') as cif_file:
        encode_stream(image, cif_file, compressed)

def save_image_as_cif(image: Image.Image, path: str) -> None:
    image_to_cif_file(image, path, False)

def save_image_as_compressed_cif(image: Image.Image, path: str) -> None:
    image_to_cif_file(image, path, True)
