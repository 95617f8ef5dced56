import io

import fitz
import pytest
from PIL import Image

from xobjects import add_image_xobject


def _encode(img: Image.Image, fmt: str) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def images(tmp_path):
    """A few small image files keyed by file name."""
    d = tmp_path / "img"
    d.mkdir()
    data = {
        "a.jpg": _encode(Image.new("RGB", (16, 12), (200, 30, 30)), "JPEG"),
        "b.png": _encode(Image.new("RGB", (10, 8), (30, 200, 30)), "PNG"),
        "new.jpg": _encode(Image.new("RGB", (20, 20), (10, 10, 220)), "JPEG"),
        "new.png": _encode(Image.new("RGB", (6, 6), (240, 240, 0)), "PNG"),
        "alpha.png": _encode(Image.new("RGBA", (4, 4), (0, 0, 0, 128)), "PNG"),
        "gray.png": _encode(Image.new("L", (5, 5), 77), "PNG"),
    }
    paths = {}
    for name, raw in data.items():
        (d / name).write_bytes(raw)
        paths[name] = d / name
    return paths


@pytest.fixture
def sample_pdf(tmp_path, images):
    """3 pages; page 2 holds Im0 (no /Type), Im1 named A (jpeg), Im2 named B (png)."""
    path = tmp_path / "sample.pdf"
    with fitz.open() as doc:
        for _ in range(3):
            doc.new_page()
        untyped = add_image_xobject(doc, images["new.png"], "Z")
        doc.xref_set_key(untyped, "Type", "null")
        a = add_image_xobject(doc, images["a.jpg"], "A")
        b = add_image_xobject(doc, images["b.png"], "B")

        table = doc.get_new_xref()
        doc.update_object(table, f"<</Im0 {untyped} 0 R/Im1 {a} 0 R/Im2 {b} 0 R>>")
        doc.xref_set_key(doc[1].xref, "Resources", f"<</XObject {table} 0 R>>")
        doc.save(str(path))
    return path


@pytest.fixture
def image_xrefs(images):
    """Factory: add the A (jpeg) and B (png) images to ``doc``, return their xrefs."""
    def add(doc):
        return (
            add_image_xobject(doc, images["a.jpg"], "A"),
            add_image_xobject(doc, images["b.png"], "B"),
        )
    return add
