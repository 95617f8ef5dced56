#!/usr/bin/env python3
# pip install PyMuPDF Pillow

# Export the images of a PDF, or swap one image resource for a new image.
# Usage:
#   python main.py -f input.pdf export -o output_folder [--pages 1,3-5] [--report]
#   python main.py -f input.pdf update --page 2 --index 1 --image new.png
#   python main.py -f input.pdf update --page 2 --name Photo1 --image new.jpg
# Notes:
# - Export writes <output>/<page>/<Name>.<ext>, where Name is the image's own
#   /Name attribute and ext follows its encoding (jpeg, png, ...).
# - Update writes <source-stem>-updated<ext> next to the source; the source is
#   never modified. Existing files are overwritten.

import argparse
from pathlib import Path

from app_config import load_config
from image_ops import export_images, update_image
from report import ExportReport


def build_parser() -> argparse.ArgumentParser:
    # --file is accepted before or after the subcommand
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--file", "-f", type=Path, default=argparse.SUPPRESS, help="Path to the source PDF")
    common.add_argument("--quiet", "-q", action="store_true", default=argparse.SUPPRESS, help="Suppress progress messages")

    ap = argparse.ArgumentParser(
        description="Export the images of a PDF, or replace one page image resource.",
        parents=[common],
    )
    sub = ap.add_subparsers(dest="command", required=True)

    exp = sub.add_parser("export", parents=[common], help="Write every page image to <output>/<page>/<name>.<ext>")
    exp.add_argument("--output", "-o", type=Path, required=True, help="Output folder")
    exp.add_argument("--pages", type=str, default=None, help="Pages to process, e.g. '1,3-5,10' (1-based)")
    exp.add_argument("--report", action="store_true", default=None, help="Also write export_report.json")

    upd = sub.add_parser("update", parents=[common], help="Replace one image resource and save <stem>-updated<ext>")
    upd.add_argument("--page", type=int, required=True, help="Page number (1-based)")
    upd.add_argument("--index", type=int, default=None, help="Image position on the page (1-based)")
    upd.add_argument("--name", type=str, default=None, help="Image /Name, case-insensitive")
    upd.add_argument("--image", type=Path, required=True, help="Replacement image file")
    return ap


def main(argv: list[str] | None = None):
    ap = build_parser()
    args = ap.parse_args(argv)
    if not hasattr(args, "file"):
        ap.error("the following arguments are required: --file/-f")
    log_cb = None if getattr(args, "quiet", False) else print

    if args.command == "export":
        want_report = load_config()["report"] if args.report is None else args.report
        report = ExportReport(args.file) if want_report else None

        export_images(args.file, args.output, pages=args.pages, report=report, log_cb=log_cb)
        if report is not None:
            path = report.write_json(args.output)
            if log_cb:
                log_cb(f"📝 Report → {path}")
    else:
        update_image(
            args.file,
            page=args.page,
            image_path=args.image,
            index=args.index,
            name=args.name,
            log_cb=log_cb,
        )


if __name__ == "__main__":
    main()
