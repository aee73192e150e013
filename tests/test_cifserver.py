"""Preview server, driven through Flask's test client."""

import io

import pytest
from PIL import Image

import cif
from cifserver import app

BLACK = (0, 0, 0, 255)
WHITE = (255, 255, 255, 255)
RED = (255, 0, 0, 255)


@pytest.fixture
def client(tmp_path):
    image = Image.new('RGBA', (2, 2), BLACK)
    image.putpixel((1, 1), WHITE)
    cif.save_image_as_compressed_cif(image, str(tmp_path / "tiny.cif"))
    (tmp_path / "broken.cif").write_text("#000000,255,0\n")
    app.config['CIF_DIRECTORY'] = str(tmp_path)
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client


def test_index_lists_cifs(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "broken\ntiny\n"


def test_render_png(client):
    response = client.get("/tiny.png")
    assert response.status_code == 200
    assert response.mimetype == 'image/png'
    with Image.open(io.BytesIO(response.data)) as image:
        assert image.size == (2, 2)
        assert image.convert('RGBA').getpixel((1, 1)) == WHITE


def test_render_missing(client):
    assert client.get("/nope.png").status_code == 404


def test_render_bad_header(client):
    assert client.get("/broken.png").status_code == 400


def test_colors(client):
    response = client.get("/tiny/colors")
    assert response.status_code == 200
    assert response.get_data(as_text=True) == "#000000,255,3\n#ffffff,255,1\n"


def test_recolor_bucket(client, tmp_path):
    response = client.post("/tiny/recolor", data={'from': '#ffffff', 'to': '#ff0000'})
    assert response.status_code == 204
    store = cif.load_cif(str(tmp_path / "tiny.cif"))
    assert store.compressed
    assert store.image == {BLACK: [0, 1, 2], RED: [3]}


def test_recolor_missing_color(client):
    response = client.post("/tiny/recolor", data={'from': '#00ff00', 'to': '#ff0000'})
    assert response.status_code == 404


def test_recolor_bad_color(client):
    response = client.post("/tiny/recolor", data={'from': 'nonsense', 'to': '#ff0000'})
    assert response.status_code == 400
    response = client.post("/tiny/recolor", data={'from': '#ffffff'})
    assert response.status_code == 400


def test_encode_upload(client):
    buf = io.BytesIO()
    Image.new('RGB', (3, 1), (255, 0, 0)).save(buf, format='PNG')
    buf.seek(0)
    response = client.post("/encode?compressed=1",
                           data={'image': (buf, 'red.png')},
                           content_type='multipart/form-data')
    assert response.status_code == 200
    assert response.mimetype == 'text/x.cif'
    assert response.get_data(as_text=True).splitlines() == [
        "1,3,1,3,2", "#ff0000,255,0~2"]


def test_encode_rejects_garbage(client):
    response = client.post("/encode",
                           data={'image': (io.BytesIO(b"not an image"), 'x.png')},
                           content_type='multipart/form-data')
    assert response.status_code == 400


def test_index_ignores_uppercase_extension(client, tmp_path):
    (tmp_path / "SHOUTY.CIF").write_text("1,1,0,1,2\n#000000,255,0\n")
    response = client.get("/")
    assert response.get_data(as_text=True) == "broken\ntiny\n"
    # Everything listed can actually be fetched.
    for name in response.get_data(as_text=True).split():
        assert client.get(f"/{name}/colors").status_code != 404
