"""
Text armor for license artifacts.

Wraps an encoded artifact between BEGIN/END marker lines so it survives
copy-paste through e-mail and text-only channels:

    ---------------------------BEGIN PORTABLE LICENSE---------------------------
    eyJkYXRhIjoi...
    ----------------------------END PORTABLE LICENSE----------------------------
"""

from __future__ import annotations

import re

from portable_license.errors import InvalidBoundaryError

# Dashes on each side of a marker line
PAD_LENGTH = 27

BOUNDARY_START = re.compile(r"(?:\A|\r?\n)-*BEGIN .+? LICENSE-*\r?\n")
BOUNDARY_END = re.compile(r"\r?\n-*END .+? LICENSE-*(?:\r?\n|\Z)")


def _marker(kind: str, label: str) -> str:
    padding = "-" * PAD_LENGTH
    return f"{padding}{kind} {label.upper()} LICENSE{padding}"


def check_label(label: str) -> str:
    """
    Check a boundary label can frame an artifact.

    Raises:
        InvalidBoundaryError: If the label is not text, is blank or spans lines
    """
    if not isinstance(label, str) or not label.strip() or "\n" in label or "\r" in label:
        raise InvalidBoundaryError(f"Invalid boundary label: {label!r}")
    return label


def add_boundary(data: str, label: str) -> str:
    """
    Frame data with BEGIN/END marker lines.

    Existing framing is removed first, so re-framing does not nest.

    Args:
        data: Encoded artifact text
        label: Product label, upper-cased in the markers

    Returns:
        Framed text

    Raises:
        InvalidBoundaryError: If the label is blank or spans lines
    """
    check_label(label)

    data = remove_boundary(data)
    return "\n".join([_marker("BEGIN", label), data, _marker("END", label)])


def remove_boundary(data: str) -> str:
    """
    Strip BEGIN/END marker lines.

    Text without markers is returned unchanged; a lone BEGIN or END marker is
    stripped on its own.
    """
    after_start = BOUNDARY_START.split(data)[-1]
    return BOUNDARY_END.split(after_start)[0]
