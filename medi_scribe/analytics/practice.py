"""Practice analytics: inactive patients and diagnosis keyword trends."""

from __future__ import annotations

import math
import re
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional, Protocol, Sequence

from pydantic import BaseModel

DAYS_PER_MONTH = 30
MAX_INACTIVE_RESULTS = 5

STOP_WORDS = frozenset({
    "el", "la", "los", "las", "un", "una", "de", "del", "a", "ante", "con", "en",
    "por", "para", "y", "o", "que", "se", "su", "sus", "es", "al", "lo", "no", "si",
    "paciente", "refiere", "presenta", "acude", "dolor", "diagnostico",
    "tratamiento", "nota", "clinica", "soap",
})

_PUNCTUATION = re.compile(r"[.,/#!$%^&*;:{}=\-_`~()]")


class PatientLike(Protocol):
    id: uuid.UUID
    name: str
    phone: Optional[str]
    created_at: datetime


class InactivePatient(BaseModel):
    id: uuid.UUID
    name: str
    phone: Optional[str] = None
    last_visit: datetime
    days_since: int


class DiagnosisTrend(BaseModel):
    topic: str
    count: int
    percentage: int


def _as_utc(moment: datetime) -> datetime:
    # SQLite hands back naive timestamps
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def find_inactive_patients(
    patients: Iterable[PatientLike],
    last_visits: Mapping[uuid.UUID, datetime],
    months_threshold: int = 6,
    now: Optional[datetime] = None,
) -> list[InactivePatient]:
    """Patients who have not been seen in ``months_threshold`` months.

    A patient with no consultations is measured from their registration
    date. Returns at most five, longest absence first.
    """
    now = _as_utc(now or datetime.now(timezone.utc))
    found: list[InactivePatient] = []

    for patient in patients:
        last = _as_utc(last_visits.get(patient.id) or patient.created_at)
        seconds = abs((now - last).total_seconds())
        days = math.ceil(seconds / 86400)
        if days / DAYS_PER_MONTH >= months_threshold:
            found.append(
                InactivePatient(
                    id=patient.id,
                    name=patient.name,
                    phone=patient.phone,
                    last_visit=last,
                    days_since=days,
                )
            )

    found.sort(key=lambda p: p.days_since, reverse=True)
    return found[:MAX_INACTIVE_RESULTS]


def diagnosis_trends(summaries: Sequence[Optional[str]], limit: int = 4) -> list[DiagnosisTrend]:
    """Most frequent meaningful words across consultation summaries."""
    counts: Counter[str] = Counter()

    for summary in summaries:
        if not summary:
            continue
        for word in _PUNCTUATION.sub("", summary.lower()).split():
            if len(word) > 3 and word not in STOP_WORDS:
                counts[word] += 1

    total = sum(counts.values())
    if not total:
        return []

    return [
        DiagnosisTrend(
            topic=word[0].upper() + word[1:],
            count=count,
            percentage=round(count / total * 100),
        )
        for word, count in counts.most_common(limit)
    ]
