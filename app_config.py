"""Settings file with defaults for optional command-line flags."""

import json
import os
import platform
from pathlib import Path

CONFIG_ENV = "PDF_IMAGE_REPLACE_CONFIG"

DEFAULTS = {
    "report": False,
}


def _config_path() -> Path:
    """Return platform-appropriate config file path."""
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override)
    if platform.system() == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "PDFImageReplace" / "config.json"
    else:
        return Path.home() / ".config" / "pdf_image_replace" / "config.json"


def load_config() -> dict:
    """Known keys of the settings file merged over DEFAULTS; a missing or broken file gives defaults."""
    cfg = dict(DEFAULTS)
    p = _config_path()
    try:
        if p.exists():
            with open(p, "r", encoding="utf-8") as f:
                saved = json.load(f)
            if isinstance(saved, dict):
                cfg.update({k: saved[k] for k in DEFAULTS if k in saved})
    except (OSError, ValueError):
        pass
    return cfg
