"""PEM text encoding for raw DER key material."""

from __future__ import annotations

import base64
import binascii
import re

from keyledger.errors import MalformedPemError

# RFC 7468 line length for the base64 body.
LINE_LENGTH = 64

# RFC 7468 label: printable ASCII except "-", single spaces between words.
_LABEL_PATTERN = r"(?:[\x21-\x2c\x2e-\x7e]+(?: [\x21-\x2c\x2e-\x7e]+)*)?"
_LABEL_RE = re.compile(_LABEL_PATTERN)
_BEGIN_RE = re.compile(rf"^-----BEGIN (?P<label>{_LABEL_PATTERN})-----$")
_END_RE = re.compile(rf"^-----END (?P<label>{_LABEL_PATTERN})-----$")


def encode(data: bytes, label: str) -> str:
    """Wrap ``data`` as PEM text under ``label`` (e.g. "PRIVATE KEY").

    Deterministic; the result always ends with a newline.

    Raises:
        ValueError: ``label`` is not a valid RFC 7468 label.
    """
    if _LABEL_RE.fullmatch(label) is None:
        raise ValueError(f"invalid PEM label: {label!r}")
    body = base64.b64encode(data).decode("ascii")
    lines = [body[i : i + LINE_LENGTH] for i in range(0, len(body), LINE_LENGTH)]
    return "\n".join([f"-----BEGIN {label}-----", *lines, f"-----END {label}-----"]) + "\n"


def decode(text: str, label: str | None = None) -> bytes:
    """Inverse of :func:`encode`.

    Raises:
        MalformedPemError: Delimiters are missing or mismatched, ``label`` is
            given and differs from the text's label, or the body is not valid
            base64.
    """
    lines = [line.strip() for line in text.strip().splitlines()]
    if len(lines) < 2:
        raise MalformedPemError("expected BEGIN and END delimiter lines")
    begin = _BEGIN_RE.match(lines[0])
    end = _END_RE.match(lines[-1])
    if begin is None or end is None:
        raise MalformedPemError("missing BEGIN/END delimiter")
    if begin.group("label") != end.group("label"):
        raise MalformedPemError(
            f"label mismatch: BEGIN {begin.group('label')!r} vs END {end.group('label')!r}"
        )
    if label is not None and begin.group("label") != label:
        raise MalformedPemError(f"expected label {label!r}, got {begin.group('label')!r}")
    try:
        return base64.b64decode("".join(lines[1:-1]), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedPemError(f"invalid base64 body: {exc}") from exc
