#!/usr/bin/env python3
# CIF command line tool.
#
# Copyright 2023 Philip Boulain.
# Licensed under the EUPL-1.2-or-later.

import argparse
import logging
import cif
from PIL import Image

arg_parser = argparse.ArgumentParser(
    description="CIF (Custom Image Format) encoder.",
    epilog="Encodes any image PIL can read to CIF, or decodes CIF to any "
           "image PIL can write (type determined by file extension).")
arg_parser.add_argument("infile", help="File to read")
arg_parser.add_argument("outfile", help="File to write, will be overwritten")
arg_parser.add_argument("--decode", action="store_true",
    help="Decode the input to the output, instead of encode")
arg_parser.add_argument("--compressed", action="store_true",
    help="When encoding, write runs of pixels as ranges")
arg_parser.add_argument("--width", type=int,
    help="When decoding, override the image width from the header")
arg_parser.add_argument("--height", type=int,
    help="When decoding, override the image height from the header")
arg_parser.add_argument("--verbose", action="store_true",
    help="Log debugging detail")
args = arg_parser.parse_args()

logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

if (args.width is None) != (args.height is None):
    arg_parser.error("--width and --height must be given together")

if args.decode:
    image = cif.cif_file_to_image(args.infile, args.width, args.height)
    image.save(args.outfile)
else:
    with Image.open(args.infile) as image:
        cif.image_to_cif_file(image, args.outfile, args.compressed)
