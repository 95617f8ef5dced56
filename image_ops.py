"""
Export and update operations for page image resources.

- export_images: dump every image resource of every page to
  <output>/<page>/<name>.<ext>
- update_image: swap one image resource of one page for an image file and
  save the document as <stem>-updated<ext> next to the source
"""

import re
from pathlib import Path

import fitz  # PyMuPDF

from report import ExportReport
from xobjects import (
    InvalidArgumentsError,
    MissingAttributeError,
    NotFoundError,
    add_image_xobject,
    iter_image_resources,
    replace_entry,
    xobject_table,
)

SAFE_CHARS = re.compile(r'[^A-Za-z0-9._@#-]')
UPDATED_SUFFIX = "-updated"


def safe_name(s: str) -> str:
    return SAFE_CHARS.sub("-", s)


def parse_page_range(pages: str | None, max_page: int) -> list[int]:
    """Parse '1,3-5,10' style ranges (1-based) -> sorted unique 1-based list."""
    if not pages:
        return list(range(1, max_page + 1))
    wanted = set()
    for part in pages.split(","):
        part = part.strip()
        if not part:
            continue
        if "-" in part:
            a, b = part.split("-", 1)
            start = max(1, int(a))
            end = min(max_page, int(b))
            if start <= end:
                wanted.update(range(start, end + 1))
        else:
            p = int(part)
            if 1 <= p <= max_page:
                wanted.add(p)
    return sorted(wanted)


def updated_path(pdf_path: Path) -> Path:
    """<dir>/<stem>-updated<ext>; a source without extension gets none."""
    pdf_path = Path(pdf_path)
    return pdf_path.with_name(f"{pdf_path.stem}{UPDATED_SUFFIX}{pdf_path.suffix}")


def _quiet(_msg: str) -> None:
    pass

# ---------------- EXPORT ----------------

def export_images(
    pdf_path: Path,
    output_folder: Path,
    pages: str | None = None,
    report: ExportReport | None = None,
    log_cb=print,
) -> int:
    """Write every image resource to <output>/<page>/<name>.<ext>.

    Pages are visited last to first. Each visited page gets its directory even
    when it carries no images. Images the PDF library cannot decode are
    skipped; an image without a /Name attribute aborts the run.
    Returns the number of files written.
    """
    log_cb = log_cb or _quiet
    output_folder = Path(output_folder)
    total = 0

    with fitz.open(pdf_path) as doc:
        page_numbers = parse_page_range(pages, len(doc))
        log_cb(f"Opened: {pdf_path}  pages={len(doc)}  processing={len(page_numbers)} page(s)")

        for page_no in reversed(page_numbers):
            target = output_folder / str(page_no)
            target.mkdir(parents=True, exist_ok=True)
            if report is not None:
                report.add_page(page_no)

            page = doc[page_no - 1]
            table = xobject_table(doc, page)
            if table is None:
                log_cb(f"ℹ️  page {page_no}: no XObject resources")
                continue

            count_here = 0
            for res in iter_image_resources(doc, page, table):
                if res.name is None:
                    raise MissingAttributeError(
                        f"page {page_no}: image /{res.key} (xref {res.xref}) has no /Name"
                    )
                try:
                    base = doc.extract_image(res.xref)
                except (ValueError, RuntimeError) as e:
                    base = None
                    reason = str(e)
                else:
                    reason = "not a decodable image"
                if not base:
                    log_cb(f"⚠️  page {page_no}: skipped /{res.key}: {reason}")
                    if report is not None:
                        report.add_skipped(page_no, res.key, reason)
                    continue

                out_path = target / f"{safe_name(res.name)}.{base['ext']}"
                out_path.write_bytes(base["image"])
                count_here += 1
                if report is not None:
                    report.add_image(page_no, res.key, res.name, out_path, len(base["image"]))

            total += count_here
            if count_here:
                log_cb(f"✅ page {page_no}: extracted {count_here} image(s)")
            else:
                log_cb(f"ℹ️  page {page_no}: no image resources")

    log_cb(f"🎉 Done. Extracted {total} image(s) → {output_folder.resolve()}")
    return total

# ---------------- UPDATE ----------------

def _check_selectors(index: int | None, name: str | None) -> str | None:
    if name is not None and not name.strip():
        name = None
    if index is None and name is None:
        raise InvalidArgumentsError("Neither index nor name is set; one of them is required.")
    if index is not None and name is not None:
        raise InvalidArgumentsError("Index and name are both set; use only one of them.")
    return name


def update_image(
    pdf_path: Path,
    page: int,
    image_path: Path,
    index: int | None = None,
    name: str | None = None,
    log_cb=print,
) -> Path:
    """Replace one image resource on ``page`` and save a modified copy.

    The resource is chosen by 1-based ``index`` among the page's image
    resources, or by ``name`` compared case-insensitively with the stored
    /Name attribute. Only the XObject table entry is rewritten; the content
    stream keeps drawing the same key. Returns the path of the new PDF.
    """
    name = _check_selectors(index, name)
    log_cb = log_cb or _quiet
    pdf_path = Path(pdf_path)
    out_path = updated_path(pdf_path)

    with fitz.open(pdf_path) as doc:
        if not 1 <= page <= len(doc):
            raise NotFoundError(f"Page {page} not found; document has {len(doc)} page(s).")
        pdf_page = doc[page - 1]
        table = xobject_table(doc, pdf_page)
        if table is None:
            raise NotFoundError(f"Page {page} has no XObject resources.")

        match = None
        for position, res in enumerate(iter_image_resources(doc, pdf_page, table), start=1):
            if index is not None and position == index:
                match = res
                break
            if name is None:
                continue
            if res.name is None:
                raise MissingAttributeError(
                    f"page {page}: image /{res.key} (xref {res.xref}) has no /Name"
                )
            if res.name.casefold() == name.casefold():
                match = res
                break
        if match is None:
            selector = f"index {index}" if index is not None else f"name {name!r}"
            raise NotFoundError(f"No image resource with {selector} on page {page}.")

        new_xref = add_image_xobject(doc, image_path, match.name)
        replace_entry(doc, table, match.key, new_xref)
        log_cb(f"🔁 page {page}: /{match.key} (xref {match.xref}) → xref {new_xref} from {Path(image_path).name}")

        doc.save(str(out_path))

    log_cb(f"💾 Saved → {out_path}")
    return out_path
