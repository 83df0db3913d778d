"""PII redaction applied to transcripts before they leave the process.

The patterns are heuristics aimed at Mexican Spanish dictation: phone numbers,
e-mail addresses, self-introduced names and CURP identifiers. Clinical content
is left untouched.
"""

import re

PHONE_PLACEHOLDER = "[TELÉFONO]"
EMAIL_PLACEHOLDER = "[EMAIL]"
NAME_PLACEHOLDER = "[NOMBRE_PACIENTE]"
CURP_PLACEHOLDER = "[CURP]"

_PHONE_10_DIGITS = re.compile(r"\b\d{10}\b")
_PHONE_GROUPED = re.compile(r"\b(\d{2,3}[-\s]){1,3}\d{4}\b")
_EMAIL = re.compile(r"\b[\w.-]+@[\w.-]+\.\w{2,4}\b")
_INTRODUCED_NAME = re.compile(
    r"(soy|llamo|nombre es)\s+([A-ZÁÉÍÓÚ][a-zñáéíóú]+)(\s+[A-ZÁÉÍÓÚ][a-zñáéíóú]+)?",
    re.IGNORECASE,
)
_CURP = re.compile(r"[A-Z]{4}\d{6}[HM][A-Z]{5}\d{2}")


def redact_pii(text: str) -> tuple[str, int]:
    """Redact identifiers and report how many substitutions were made."""
    total = 0

    text, n = _PHONE_10_DIGITS.subn(PHONE_PLACEHOLDER, text)
    total += n
    text, n = _PHONE_GROUPED.subn(PHONE_PLACEHOLDER, text)
    total += n
    text, n = _EMAIL.subn(EMAIL_PLACEHOLDER, text)
    total += n
    text, n = _INTRODUCED_NAME.subn(rf"\1 {NAME_PLACEHOLDER}", text)
    total += n
    text, n = _CURP.subn(CURP_PLACEHOLDER, text)
    total += n

    return text, total


def sanitize_content(text: str) -> str:
    """Return ``text`` with phones, e-mails, introduced names and CURPs redacted."""
    return redact_pii(text)[0]
