"""
Image XObject lookup and construction on top of PyMuPDF.

A page's image resources live in the /XObject sub-dictionary of its resource
dictionary. This module finds that table (following page-tree inheritance),
walks its image entries in dictionary order, and builds new image streams
that can be dropped into the table under an existing key.
"""

import io
from dataclasses import dataclass
from pathlib import Path

import fitz  # PyMuPDF
from PIL import Image

# ---------------- ERRORS ----------------

class ImageResourceError(Exception):
    """Base class for image resource lookup failures."""


class InvalidArgumentsError(ImageResourceError, ValueError):
    """Selector arguments are missing or contradictory."""


class NotFoundError(ImageResourceError, LookupError):
    """A page, XObject table or image resource could not be resolved."""


class MissingAttributeError(ImageResourceError):
    """An image resource lacks an attribute the operation needs."""

# ---------------- RESOURCE TABLE ----------------

@dataclass(frozen=True)
class XObjectTable:
    """Location of a /XObject dictionary: holding xref plus key path inside it."""
    xref: int
    path: str = ""

    def key(self, name: str) -> str:
        return f"{self.path}/{name}" if self.path else name


@dataclass(frozen=True)
class ImageResource:
    key: str
    xref: int
    name: str | None  # own /Name attribute, not the dictionary key


def _ref_xref(value: str) -> int:
    # "12 0 R" -> 12
    return int(value.split()[0])


def _join(path: str, key: str) -> str:
    return f"{path}/{key}" if path else key


def resources_owner(doc: fitz.Document, page: fitz.Page) -> int | None:
    """Return the xref of the page-tree node carrying the page's /Resources."""
    xref = page.xref
    seen: set[int] = set()
    while xref not in seen:
        seen.add(xref)
        kind, _ = doc.xref_get_key(xref, "Resources")
        if kind != "null":
            return xref
        kind, value = doc.xref_get_key(xref, "Parent")
        if kind != "xref":
            return None
        xref = _ref_xref(value)
    return None


def xobject_table(doc: fitz.Document, page: fitz.Page) -> XObjectTable | None:
    """Locate the page's /XObject dictionary, or None if the page has none."""
    owner = resources_owner(doc, page)
    if owner is None:
        return None

    xref, path = owner, "Resources"
    kind, value = doc.xref_get_key(owner, "Resources")
    if kind == "xref":
        xref, path = _ref_xref(value), ""
    elif kind != "dict":
        return None

    kind, value = doc.xref_get_key(xref, _join(path, "XObject"))
    if kind == "xref":
        return XObjectTable(_ref_xref(value))
    if kind == "dict":
        return XObjectTable(xref, _join(path, "XObject"))
    return None


def _name_value(doc: fitz.Document, xref: int, key: str) -> str | None:
    kind, value = doc.xref_get_key(xref, key)
    if kind != "name":
        return None
    return value[1:]


def iter_image_resources(doc: fitz.Document, page: fitz.Page, table: XObjectTable):
    """Yield the page's image resources in dictionary order.

    An entry qualifies when its value is an indirect reference to a stream
    whose /Type is /XObject and /Subtype is /Image. Everything else in the
    table (forms, inline dictionaries, untyped streams) is skipped.
    """
    for img in page.get_images(full=True):
        xref, key, referencer = img[0], img[7], img[9]
        if referencer:
            # belongs to the resources of a nested form XObject
            continue
        kind, _ = doc.xref_get_key(table.xref, table.key(key))
        if kind != "xref" or not doc.xref_is_stream(xref):
            continue
        if _name_value(doc, xref, "Type") != "XObject":
            continue
        if _name_value(doc, xref, "Subtype") != "Image":
            continue
        yield ImageResource(key=key, xref=xref, name=_name_value(doc, xref, "Name"))


def replace_entry(doc: fitz.Document, table: XObjectTable, key: str, xref: int) -> None:
    """Point ``key`` of the XObject table at indirect object ``xref``."""
    doc.xref_set_key(table.xref, table.key(key), f"{xref} 0 R")

# ---------------- NEW IMAGE OBJECTS ----------------

_JPEG_COLORSPACES = {"L": "/DeviceGray", "RGB": "/DeviceRGB", "CMYK": "/DeviceCMYK"}


def _pdf_name(name: str) -> str:
    return "/" + "".join(c if c.isalnum() or c in "._-#" else f"#{ord(c):02X}" for c in name)


def _add_stream(doc: fitz.Document, header: str, data: bytes, compress: bool) -> int:
    xref = doc.get_new_xref()
    doc.update_object(xref, header)
    doc.update_stream(xref, data, new=True, compress=compress)
    return xref


def _image_header(width: int, height: int, colorspace: str, extra: str = "") -> str:
    return (
        f"<</Type/XObject/Subtype/Image/Width {width}/Height {height}"
        f"/ColorSpace{colorspace}/BitsPerComponent 8{extra}>>"
    )


def _alpha_split(img: Image.Image) -> tuple[Image.Image, Image.Image | None]:
    if img.mode == "P" and "transparency" in img.info:
        img = img.convert("RGBA")
    if img.mode in ("RGBA", "LA"):
        alpha = img.getchannel("A")
        base = img.convert("L" if img.mode == "LA" else "RGB")
        return base, alpha
    if img.mode not in ("L", "RGB"):
        img = img.convert("RGB")
    return img, None


def add_image_xobject(doc: fitz.Document, image_path: Path, name: str | None = None) -> int:
    """Create an image XObject stream from an image file; return its xref.

    JPEG files in a PDF-native colour space are embedded as-is (DCTDecode),
    anything else is stored as Flate-compressed 8-bit samples with an optional
    /SMask for the alpha channel.
    """
    raw = Path(image_path).read_bytes()
    name_entry = f"/Name{_pdf_name(name)}" if name else ""

    with Image.open(io.BytesIO(raw)) as img:
        img.load()
        width, height = img.size

        if img.format == "JPEG" and img.mode in _JPEG_COLORSPACES:
            header = _image_header(width, height, _JPEG_COLORSPACES[img.mode], name_entry)
            xref = _add_stream(doc, header, raw, False)
            # update_stream drops /Filter for uncompressed data
            doc.xref_set_key(xref, "Filter", "/DCTDecode")
            return xref

        base, alpha = _alpha_split(img)
        samples = base.tobytes()
        colorspace = "/DeviceGray" if base.mode == "L" else "/DeviceRGB"
        alpha_samples = alpha.tobytes() if alpha is not None else None

    if alpha_samples is not None:
        smask = _add_stream(doc, _image_header(width, height, "/DeviceGray"), alpha_samples, True)
        name_entry += f"/SMask {smask} 0 R"
    return _add_stream(doc, _image_header(width, height, colorspace, name_entry), samples, True)
