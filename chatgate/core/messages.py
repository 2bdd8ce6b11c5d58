"""Rejection codes and their user-facing, localized messages.

Every gate failure maps to one stable ``RejectionReason``. The HTTP status and
the Romanian/English copy shown to the visitor are looked up here so raw
provider or stack-trace text never reaches the client.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

Language = Literal["ro", "en"]

DEFAULT_LANGUAGE: Language = "ro"

CONTACT_HINT = "WhatsApp: +40723154520"


class RejectionReason(str, Enum):
    """Machine-readable outcome codes returned in the ``error`` field."""

    ADMITTED = "admitted"
    RATE_LIMITED = "rate_limited"
    MALFORMED_INPUT = "malformed_input"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    SUSPECTED_INJECTION = "suspected_injection"
    CAPTCHA_MISSING = "captcha_missing"
    CAPTCHA_INVALID = "captcha_invalid"
    INVALID_MESSAGE = "invalid_message"
    UPSTREAM_RATE_LIMITED = "upstream_rate_limited"
    UPSTREAM_QUOTA_EXHAUSTED = "upstream_quota_exhausted"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    INTERNAL_ERROR = "internal_error"


STATUS_CODES: dict[RejectionReason, int] = {
    RejectionReason.ADMITTED: 200,
    RejectionReason.RATE_LIMITED: 429,
    RejectionReason.MALFORMED_INPUT: 400,
    RejectionReason.PAYLOAD_TOO_LARGE: 400,
    RejectionReason.SUSPECTED_INJECTION: 400,
    RejectionReason.CAPTCHA_MISSING: 400,
    RejectionReason.CAPTCHA_INVALID: 403,
    RejectionReason.INVALID_MESSAGE: 400,
    RejectionReason.UPSTREAM_RATE_LIMITED: 429,
    RejectionReason.UPSTREAM_QUOTA_EXHAUSTED: 402,
    RejectionReason.UPSTREAM_UNAVAILABLE: 500,
    RejectionReason.INTERNAL_ERROR: 500,
}

_MESSAGES: dict[RejectionReason, dict[str, str]] = {
    RejectionReason.RATE_LIMITED: {
        "ro": (
            "Ai trimis prea multe mesaje într-un timp scurt. Te rog așteaptă un moment "
            f"sau contactează-ne pe {CONTACT_HINT}"
        ),
        "en": (
            "You have sent too many messages in a short time. Please wait a moment "
            f"or contact us on {CONTACT_HINT}"
        ),
    },
    RejectionReason.MALFORMED_INPUT: {
        "ro": "Cererea nu este validă. Te rog reîncarcă pagina și încearcă din nou.",
        "en": "The request is not valid. Please reload the page and try again.",
    },
    RejectionReason.PAYLOAD_TOO_LARGE: {
        "ro": "Cererea este prea mare. Te rog scurtează mesajul sau conversația.",
        "en": "The request is too large. Please shorten the message or conversation.",
    },
    RejectionReason.SUSPECTED_INJECTION: {
        "ro": "Nu am putut procesa acest mesaj. Te rog reformulează întrebarea.",
        "en": "I couldn't process this message. Please rephrase your question.",
    },
    RejectionReason.CAPTCHA_MISSING: {
        "ro": "Te rog confirmă că nu ești robot înainte de a trimite mesajul.",
        "en": "Please complete the verification before sending your message.",
    },
    RejectionReason.CAPTCHA_INVALID: {
        "ro": "Verificarea anti-robot a eșuat. Te rog încearcă din nou.",
        "en": "Verification failed. Please complete the challenge again.",
    },
    RejectionReason.INVALID_MESSAGE: {
        "ro": (
            "Mesajul este prea lung sau gol. Te rog păstrează mesajele sub "
            "{max_chars} de caractere."
        ),
        "en": (
            "Message is too long or empty. Please keep messages under "
            "{max_chars} characters."
        ),
    },
    RejectionReason.UPSTREAM_RATE_LIMITED: {
        "ro": (
            "Primesc prea multe cereri în acest moment. Te rog încearcă din nou "
            "într-un moment sau contactează-ne pe WhatsApp."
        ),
        "en": (
            "I'm receiving too many requests right now. Please try again in a "
            "moment or contact us on WhatsApp."
        ),
    },
    RejectionReason.UPSTREAM_QUOTA_EXHAUSTED: {
        "ro": f"Serviciul AI este temporar indisponibil. Te rog contactează-ne pe {CONTACT_HINT}",
        "en": f"Our AI service is temporarily unavailable. Please contact us on {CONTACT_HINT}",
    },
    RejectionReason.UPSTREAM_UNAVAILABLE: {
        "ro": (
            "Asistentul nu răspunde momentan. Te rog încearcă din nou mai târziu "
            f"sau contactează-ne pe {CONTACT_HINT}"
        ),
        "en": (
            "The assistant is not responding right now. Please try again later "
            f"or contact us on {CONTACT_HINT}"
        ),
    },
    RejectionReason.INTERNAL_ERROR: {
        "ro": f"Îmi pare rău, a apărut o eroare. Te rog contactează-ne pe {CONTACT_HINT}",
        "en": f"Sorry, something went wrong. Please contact us on {CONTACT_HINT}",
    },
}

EMPTY_COMPLETION_FALLBACK: dict[str, str] = {
    "ro": (
        "Îmi pare rău, nu am putut procesa cererea. Te rog încearcă din nou "
        "sau contactează-ne pe WhatsApp."
    ),
    "en": (
        "I apologize, I couldn't process your request. Please try again or "
        "contact us on WhatsApp."
    ),
}


def resolve_language(value: object) -> Language:
    """Map any client-supplied language to a supported one (``ro`` fallback)."""
    if isinstance(value, str) and value.strip().lower() == "en":
        return "en"
    return DEFAULT_LANGUAGE


def status_for(reason: RejectionReason) -> int:
    return STATUS_CODES[reason]


def message_for(reason: RejectionReason, language: Language, **params: object) -> str:
    """Return the localized user-facing message for a rejection reason."""
    template = _MESSAGES[reason].get(language) or _MESSAGES[reason][DEFAULT_LANGUAGE]
    return template.format(**params) if params else template
