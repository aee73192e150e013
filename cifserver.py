# Preview server for a directory of CIF images.
# Renders them as PNG, lists and recolors their palettes, and encodes uploads.
#
# Copyright 2023 Philip Boulain.
# Licensed under the EUPL-1.2-or-later.

import flask
import logging
from PIL import Image, UnidentifiedImageError

import cif
import cifutils

app = flask.Flask(__name__)
app.config['CIF_DIRECTORY'] = 'cifs'

try:
    import cifserver_config
    app.config.from_object(cifserver_config)
except ModuleNotFoundError:
    # File doesn't exist is fine; there's no customization.
    pass
# ImportError, however, means customization was attempted and is bad.
# Let it propagate.

def _directory() -> str:
    return app.config['CIF_DIRECTORY']

def _load(name: str) -> cif.Cif:
    return cif.load_cif(cifutils.cif_path(_directory(), name))

@app.route("/")
def index():
    try:
        names = cifutils.list_cifs(_directory())
    except FileNotFoundError:
        return cifutils.respond_txt("CIF directory is missing", 404)
    return cifutils.respond_txt(''.join(name + '\n' for name in names))

@app.route("/<name>.png")
def render(name: str):
    try:
        store = _load(name)
    except FileNotFoundError:
        return cifutils.respond_txt(f"No CIF named {name}", 404)
    except ValueError as e:
        return cifutils.respond_txt(f"Can't read {name}: {e}", 400)
    image = store.render()
    response = cifutils.respond_png(image)
    image.close()
    return response

@app.route("/<name>/colors")
def colors(name: str):
    try:
        store = _load(name)
    except FileNotFoundError:
        return cifutils.respond_txt(f"No CIF named {name}", 404)
    except ValueError as e:
        return cifutils.respond_txt(f"Can't read {name}: {e}", 400)
    return cifutils.respond_colors(store)

@app.route("/<name>/recolor", methods=("POST",))
def recolor(name: str):
    form = flask.request.form
    old_color = cifutils.parse_color(form.get('from'), form.get('from_alpha'))
    new_color = cifutils.parse_color(form.get('to'), form.get('to_alpha'))
    if old_color is None or new_color is None:
        return cifutils.respond_txt("Need valid 'from' and 'to' colors", 400)
    try:
        path = cifutils.cif_path(_directory(), name)
        store = cif.load_cif(path)
    except FileNotFoundError:
        return cifutils.respond_txt(f"No CIF named {name}", 404)
    except ValueError as e:
        return cifutils.respond_txt(f"Can't read {name}: {e}", 400)
    if not store.recolor_bucket(old_color, new_color):
        return cifutils.respond_txt(f"{name} has no pixels of that color", 404)
    cif.save_cif(store, path)
    logging.info(f'Recolored {name}: {old_color} -> {new_color}')
    return "", 204

@app.route("/encode", methods=("POST",))
def encode():
    upload = flask.request.files.get('image')
    if upload is None:
        return cifutils.respond_txt("No image uploaded", 400)
    compressed = flask.request.args.get('compressed', '0') not in ('', '0')
    try:
        with Image.open(upload.stream) as image:
            return cifutils.respond_cif(image, compressed)
    except UnidentifiedImageError:
        logging.exception('Uploaded image could not be read')
        return cifutils.respond_txt("Could not read that image", 400)
