# odogen/storage.py
from __future__ import annotations
import json
from typing import Optional

from .model import Session


def _ask_save(title: str, ext: str, kind: str) -> str:
    from tkinter import filedialog
    return filedialog.asksaveasfilename(
        title=title,
        defaultextension=ext,
        filetypes=[(kind, "*" + ext), ("All files", "*.*")]
    )


def _ask_open(title: str, ext: str, kind: str) -> str:
    from tkinter import filedialog
    return filedialog.askopenfilename(
        title=title,
        filetypes=[(kind, "*" + ext), ("All files", "*.*")]
    )


def save_routine(session: Session, filename: Optional[str] = None) -> Optional[str]:
    """Save routine to JSON file; asks for a name when none is given."""
    filename = filename or _ask_save("Save routine", ".json", "JSON files")
    if not filename:
        return None
    with open(filename, "w", encoding="utf-8") as f:
        json.dump(session.to_dict(), f, indent=4)
    return filename


def load_routine(filename: Optional[str] = None) -> Optional[Session]:
    """Load routine from JSON file."""
    filename = filename or _ask_open("Load routine", ".json", "JSON files")
    if not filename:
        return None
    with open(filename, "r", encoding="utf-8") as f:
        data = json.load(f)
    return Session.from_dict(data)


def read_program(filename: Optional[str] = None) -> Optional[str]:
    """Read program text to decode."""
    filename = filename or _ask_open("Decode program", ".java", "Java files")
    if not filename:
        return None
    with open(filename, "r", encoding="utf-8") as f:
        return f.read()


def export_program(code: str, filename: Optional[str] = None) -> Optional[str]:
    """Write generated program text."""
    filename = filename or _ask_save("Export program", ".java", "Java files")
    if not filename:
        return None
    with open(filename, "w", encoding="utf-8") as f:
        f.write(code)
    print(f"Exported program to: {filename}")
    return filename


def export_log(lines, filename: Optional[str] = None) -> Optional[str]:
    """Export session log lines to a text file and clear them."""
    filename = filename or _ask_save("Export log", ".txt", "Text files")
    if not filename:
        return None
    with open(filename, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")
    lines.clear()
    return filename
