# Copy to cifserver_config.py to customize the CIF preview server.
# Anything not set here keeps its default.

# Directory holding the .cif files to serve. Recoloring rewrites them in place.
CIF_DIRECTORY = "cifs"
