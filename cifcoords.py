# Pixel position <-> linear id mapping for CIF images.
#
# Ids are row-major: id = y * width + x. Encoding, decoding and recoloring
# must all go through here, or images get silently scrambled.
#
# Copyright 2023 Philip Boulain.
# Licensed under the EUPL-1.2-or-later.

import typing

def to_id(x: int, y: int, width: int) -> int:
    # No bounds checking; callers guarantee 0 <= x < width.
    return y * width + x

def to_xy(pixel_id: int, width: int) -> typing.Tuple[int, int]:
    return pixel_id % width, pixel_id // width

def checksum(width: int, height: int) -> int:
    """Number of pixels, which is also the exclusive upper bound on ids."""
    return width * height
