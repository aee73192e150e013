# CIF row codec.
#
# One row per color:
#   <#rrggbb>,<alpha>,<token>,<token>,...
# Each token is either a single pixel id, or an inclusive range of ids written
# as <start>~<end>. Uncompressed rows only ever contain single ids; compressed
# rows use a range for every run of two or more consecutive ids. Decoding
# accepts either, so the compressed flag is only a hint about the layout.
#
# Decoding is deliberately forgiving: a row with a bad color or alpha is
# dropped, a token that doesn't parse is dropped, and everything else is kept.
#
# Copyright 2023 Philip Boulain.
# Licensed under the EUPL-1.2-or-later.

import logging
import re
import typing
from PIL import ImageColor

_INTERVAL_SEPARATOR = '~'
_HEX_COLOR_REGEX = re.compile(r'#[0-9a-fA-F]{6}')

Color = typing.Tuple[int, int, int, int]  # (r, g, b, a), as PIL RGBA pixels.
Row = typing.List[str]

class CifImageData(typing.NamedTuple):
    """One decoded row: a color and the sorted, unique ids holding it."""
    color: Color
    coordinates: typing.List[int]

def color_to_hex(color: Color) -> typing.Tuple[str, str]:
    r, g, b, a = color
    return f"#{r:02x}{g:02x}{b:02x}", str(a)

def hex_to_color(hex_color: str, alpha: str) -> Color:
    """Inverse of color_to_hex(). Raises ValueError if either field is bad."""
    a = int(alpha)
    if not 0 <= a <= 255:
        raise ValueError(f"Alpha {a} out of range")
    hex_color = hex_color.strip()
    # getrgb() would also take names and rgb() forms; rows only use #rrggbb.
    if not _HEX_COLOR_REGEX.fullmatch(hex_color):
        raise ValueError(f"Color \"{hex_color}\" is not #rrggbb")
    rgb = ImageColor.getrgb(hex_color)
    return (rgb[0], rgb[1], rgb[2], a)

def _parse_id(token: str) -> typing.Optional[int]:
    try:
        value = int(token)
    except ValueError:
        return None
    if value < 0:
        return None
    return value

def decompress(tokens: typing.Iterable[str],
               limit: typing.Optional[int] = None) -> typing.List[int]:
    """Expand single-id and range tokens into a sorted list of unique ids.

    If limit is given, ids at or above it are dropped, and ranges are clipped
    to it before being expanded.
    """
    ids: typing.Set[int] = set()
    for token in tokens:
        token = token.strip()
        if _INTERVAL_SEPARATOR in token:
            parts = token.split(_INTERVAL_SEPARATOR)
            if len(parts) != 2:
                logging.warning(f'Dropping malformed range token "{token}"')
                continue
            start = _parse_id(parts[0])
            end = _parse_id(parts[1])
            if start is None or end is None:
                logging.warning(f'Dropping malformed range token "{token}"')
                continue
            if start > end:
                # Nothing sensible to expand to; treat it as empty.
                logging.warning(f'Dropping inverted range token "{token}"')
                continue
            if limit is not None:
                if start >= limit:
                    logging.warning(
                        f'Dropping range token "{token}" past id {limit - 1}')
                    continue
                if end >= limit:
                    logging.warning(
                        f'Clipping range token "{token}" to id {limit - 1}')
                    end = limit - 1
            ids.update(range(start, end + 1))
        else:
            pixel_id = _parse_id(token)
            if pixel_id is None:
                logging.warning(f'Dropping malformed id token "{token}"')
                continue
            if limit is not None and pixel_id >= limit:
                logging.warning(f'Dropping id token "{token}" past id {limit - 1}')
                continue
            ids.add(pixel_id)
    return sorted(ids)

def compress(ids: typing.Iterable[int]) -> Row:
    """Encode ids as tokens, using a range for each run of two or more."""
    tokens: Row = []
    ordered = sorted(set(ids))
    i = 0
    while i < len(ordered):
        start = ordered[i]
        # Extend the run while the next id is exactly one more.
        j = i
        while j + 1 < len(ordered) and ordered[j + 1] == ordered[j] + 1:
            j += 1
        if j > i:
            tokens.append(f"{start}{_INTERVAL_SEPARATOR}{ordered[j]}")
        else:
            tokens.append(str(start))
        i = j + 1
    return tokens

def parse_row(row: Row, limit: typing.Optional[int] = None
              ) -> typing.Optional[CifImageData]:
    """Parse one row, or return None if its color or alpha is unusable.

    limit, if given, is the exclusive upper bound on ids; see decompress().
    """
    if len(row) < 2:
        logging.warning(f'Dropping row with {len(row)} fields')
        return None
    try:
        color = hex_to_color(row[0], row[1])
    except ValueError:
        logging.warning(f'Dropping row with bad color "{row[0]}", alpha "{row[1]}"')
        return None
    return CifImageData(color, decompress(row[2:], limit))

def serialize_row(color: Color, ids: typing.Iterable[int], compressed: bool
                  ) -> Row:
    hex_color, alpha = color_to_hex(color)
    row: Row = [hex_color, alpha]
    if compressed:
        row.extend(compress(ids))
    else:
        row.extend(str(i) for i in sorted(ids))
    return row
