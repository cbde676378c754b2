"""
Pre-sanitizer for spreadsheet CSV exports.

CSV files saved from Excel / Google Sheets / phone apps often contain:
- A UTF-8 or UTF-16 byte order mark
- Windows-1252 text mislabelled or saved without a BOM
- Stray C0 control characters pasted in from other tools

This module turns the raw bytes into clean text BEFORE csv parsing,
and returns both the text and a list of warning messages.
"""

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Tuple

from loguru import logger

# C0 control characters except tab, LF and CR, plus DEL and a stray BOM
_INVALID_CHAR_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F\uFEFF]")


def _fix_encoding(raw: bytes) -> Tuple[str, str]:
    """
    Detect the byte stream's encoding and decode it.

    Returns (text, detected_encoding).
    """
    if raw.startswith(b"\xff\xfe"):
        try:
            return raw[2:].decode("utf-16-le"), "utf-16-le"
        except UnicodeDecodeError:
            pass
    elif raw.startswith(b"\xfe\xff"):
        try:
            return raw[2:].decode("utf-16-be"), "utf-16-be"
        except UnicodeDecodeError:
            pass

    for enc in ("utf-8-sig", "utf-8", "windows-1252", "latin-1"):
        try:
            return raw.decode(enc), enc
        except (UnicodeDecodeError, LookupError):
            continue
    # Not reached: latin-1 maps every byte
    return raw.decode("utf-8", errors="replace"), "utf-8(replaced)"


def _strip_invalid_chars(text: str) -> Tuple[str, list[str]]:
    """
    Remove control characters that have no business in a spreadsheet cell.

    Returns (clean_text, list_of_warning_strings).
    """
    warnings: list[str] = []
    positions = [m.start() for m in _INVALID_CHAR_RE.finditer(text)]

    if positions:
        warnings.append(
            f"Removed {len(positions)} invalid control character(s) "
            f"at offsets: {positions[:20]}"
        )

    return _INVALID_CHAR_RE.sub("", text), warnings


def _backup_raw(raw: bytes, source_path: str, backup_dir: Path) -> list[str]:
    backup_dir = Path(backup_dir)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S")
    src = Path(source_path)
    backup_path = backup_dir / f"{src.stem}_{stamp}{src.suffix}.bak"
    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
        backup_path.write_bytes(raw)
        logger.debug(f"Raw backup saved to {backup_path}")
    except OSError as e:
        return [f"Could not write raw backup: {e}"]
    return []


def decode_csv(
    raw: bytes,
    *,
    source_path: str = "<upload>",
    backup_dir: Path | None = None,
) -> Tuple[str, list[str]]:
    """
    Full sanitisation pipeline.

    1. Save raw backup copy (when backup_dir is given).
    2. Decode (auto-detect encoding), drop the BOM.
    3. Strip control characters.

    Returns
    -------
    (text, warnings)
    """
    warnings: list[str] = []

    if backup_dir:
        warnings.extend(_backup_raw(raw, source_path, backup_dir))

    text, detected_enc = _fix_encoding(raw)
    if detected_enc not in ("utf-8", "utf-8-sig"):
        warnings.append(f"Re-encoded from {detected_enc} to UTF-8")
        logger.info(f"{source_path}: Re-encoded from {detected_enc}")

    text, char_warnings = _strip_invalid_chars(text)
    warnings.extend(char_warnings)
    if char_warnings:
        logger.warning(f"{source_path}: {char_warnings[0]}")

    return text, warnings
