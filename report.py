"""JSON summary of an export run."""

import json
from datetime import datetime, timezone
from pathlib import Path

REPORT_FILENAME = "export_report.json"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ExportReport:
    """Accumulates per-page export results and writes a JSON report at the end."""
    def __init__(self, input_pdf: Path):
        self.input_pdf = str(input_pdf)
        self.started_at = _now()
        self.pages: dict[int, dict] = {}

    def add_page(self, page: int):
        self.pages.setdefault(page, {"page": page, "images": [], "skipped": []})

    def add_image(self, page: int, key: str, name: str, path: Path, size: int):
        self.add_page(page)
        self.pages[page]["images"].append({
            "key": key,
            "name": name,
            "file": str(path),
            "bytes": size,
        })

    def add_skipped(self, page: int, key: str, reason: str):
        self.add_page(page)
        self.pages[page]["skipped"].append({"key": key, "reason": reason})

    def to_dict(self):
        pages = [self.pages[p] for p in sorted(self.pages)]
        return {
            "input": self.input_pdf,
            "started_at": self.started_at,
            "finished_at": _now(),
            "pages": pages,
            "summary": {
                "pages_processed": len(pages),
                "total_images": sum(len(p["images"]) for p in pages),
                "total_skipped": sum(len(p["skipped"]) for p in pages),
            },
        }

    def write_json(self, out_folder: Path, filename: str = REPORT_FILENAME) -> Path:
        out_folder.mkdir(parents=True, exist_ok=True)
        p = out_folder / filename
        with open(p, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
        return p
