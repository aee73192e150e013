import flask
import io
import os
import typing
from PIL import Image

import cif
import cifrow
from cifstore import Cif

def parse_color(hex_color: typing.Optional[str], alpha: typing.Optional[str]
                ) -> typing.Optional[cifrow.Color]:
    """Parse a color given as form/query fields, defaulting to opaque."""
    if not hex_color:
        return None
    try:
        return cifrow.hex_to_color(hex_color, alpha or '255')
    except ValueError:
        return None

def cif_path(directory: str, name: str) -> str:
    # Names come from URLs; don't let them wander out of the directory.
    if os.path.basename(name) != name or name.startswith('.'):
        raise ValueError(f'bad CIF name "{name}"')
    return os.path.join(directory, name + '.cif')

def list_cifs(directory: str) -> typing.List[str]:
    return sorted(filename[:-len('.cif')]
                  for filename in os.listdir(directory)
                  if filename.endswith('.cif'))

def respond_png(image: Image.Image) -> flask.Response:
    """Build a response from a PIL image by PNG-encoding it."""
    buf = io.BytesIO()
    image.save(buf, format='PNG')
    # Send the whole body rather than streaming a BytesIO as chunked.
    response: flask.Response = flask.make_response(buf.getvalue())
    response.mimetype = 'image/png'
    return response

def respond_cif(image: Image.Image, compressed: bool) -> flask.Response:
    """Build a response from a PIL image by CIF-encoding it."""
    response: flask.Response = flask.make_response(
        cif.encode(image, compressed))
    response.content_type = 'text/x.cif; charset=utf-8'
    return response

def respond_colors(store: Cif) -> flask.Response:
    """List each color still in use with how many pixels it owns."""
    lines = []
    for color in store.colors():
        hex_color, alpha = cifrow.color_to_hex(color)
        lines.append(f'{hex_color},{alpha},{len(store.image[color])}')
    return respond_txt(''.join(line + '\n' for line in lines))

def respond_txt(text: str, status: int = 200) -> flask.Response:
    """Build a response from UTF-8 plaintext."""
    response: flask.Response = flask.make_response(text, status)
    response.content_type = 'text/plain; charset=utf-8'
    return response
