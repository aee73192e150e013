# In-memory CIF image: a mapping of color to the pixel ids holding it.
#
# Every id in [0, width*height) belongs to at most one color bucket, and the
# id->color index always agrees with the buckets.
#
# Buckets emptied by recolor_pixel() are kept, so anything counting colors
# should use colors() rather than len(image).
#
# Not thread-safe; give each Cif a single owner.
#
# Copyright 2023 Philip Boulain.
# Licensed under the EUPL-1.2-or-later.

import logging
import typing
from PIL import Image

import cifcoords
from cifrow import Color

class Cif:
    def __init__(self, width: int, height: int, compressed: bool = False,
                 image: typing.Optional[typing.Mapping[Color, typing.Iterable[int]]] = None):
        self.width = width
        self.height = height
        # How the persisted rows are laid out; doesn't affect anything here.
        self.compressed = compressed
        self.image: typing.Dict[Color, typing.List[int]] = {}
        self._owner: typing.Dict[int, Color] = {}
        if image:
            for color, ids in image.items():
                self.add(color, ids)
        # Snapshot at construction; not kept up to date by recoloring.
        self.number_of_colors = len(self.image)

    @property
    def checksum(self) -> int:
        return cifcoords.checksum(self.width, self.height)

    def add(self, color: Color, ids: typing.Iterable[int]) -> int:
        """Append ids to a color's bucket, creating it if needed.

        Ids out of bounds, or already owned by some bucket, are skipped.
        Returns how many ids were actually added.
        """
        bucket = self.image.setdefault(color, [])
        added = 0
        out_of_bounds = 0
        duplicates = 0
        for pixel_id in ids:
            if not 0 <= pixel_id < self.checksum:
                out_of_bounds += 1
            elif pixel_id in self._owner:
                duplicates += 1
            else:
                bucket.append(pixel_id)
                self._owner[pixel_id] = color
                added += 1
        if out_of_bounds:
            logging.warning(
                f'Skipped {out_of_bounds} ids outside {self.width}x{self.height}'
                f' for color {color}')
        if duplicates:
            logging.warning(
                f'Skipped {duplicates} ids already assigned another color'
                f' for color {color}')
        return added

    def color_at(self, x: int, y: int) -> typing.Optional[Color]:
        if x < 0 or y < 0 or x >= self.width:
            return None
        return self._owner.get(cifcoords.to_id(x, y, self.width))

    def colors(self) -> typing.List[Color]:
        """Colors that still own at least one pixel, in insertion order."""
        return [color for color, ids in self.image.items() if ids]

    def pixel_count(self) -> int:
        return sum(len(ids) for ids in self.image.values())

    def recolor_pixel(self, x: int, y: int, color: Color) -> bool:
        """Move one pixel to another color.

        Returns False, changing nothing, if the pixel is out of bounds, not
        in any bucket, or already that color.
        """
        if x < 0 or y < 0 or x >= self.width:
            return False
        pixel_id = cifcoords.to_id(x, y, self.width)
        if pixel_id >= self.checksum:
            return False
        old_color = self._owner.get(pixel_id)
        if old_color is None or old_color == color:
            return False
        # Leaves an empty bucket behind if this was its last pixel.
        self.image[old_color].remove(pixel_id)
        self.image.setdefault(color, []).append(pixel_id)
        self._owner[pixel_id] = color
        return True

    def recolor_bucket(self, old_color: Color, new_color: Color) -> bool:
        """Move every pixel of one color to another, merging buckets."""
        if old_color not in self.image:
            return False
        if old_color == new_color:
            return True
        ids = self.image.pop(old_color)
        if new_color in self.image:
            self.image[new_color].extend(ids)
        else:
            self.image[new_color] = ids
        for pixel_id in ids:
            self._owner[pixel_id] = new_color
        return True

    def render(self) -> Image.Image:
        """Paint every bucket onto a fresh, transparent RGBA image.

        Pixels that no bucket claims stay (0, 0, 0, 0).
        """
        image = Image.new('RGBA', (self.width, self.height))
        for color, ids in self.image.items():
            for pixel_id in ids:
                image.putpixel(cifcoords.to_xy(pixel_id, self.width), color)
        return image
