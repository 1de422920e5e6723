# Overview: Pure derivation of a readable verdict from observation findings.

"""
Observation Summary

WHY: Staff and the complaint detail page need the same reading of an
observation record: verdict, issue category/severity, evidence, and a
replacement proposal. This module is pure (no DB, no clock unless `today`
is omitted) so the rules are testable in isolation.

Rules worth knowing:
- No record, or no observation_result yet -> Pending with fixed copy.
- Anything other than "Valid" is read as Invalid.
- The replacement proposal only exists for Valid results, even when the
  quantity/hybrid fields are filled in on an Invalid record.
- Category/severity is only derived when is_germination_issue == "Ya";
  the first matching branch wins.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any, Literal, Mapping

from seedcare.time_utils import parse_iso_date, utcnow
from seedcare.validation import YES


SummaryStatus = Literal["Valid", "Invalid", "Pending"]
Severity = Literal["high", "medium", "low"]

# (field, label) in display order
ISSUE_CRITERIA: tuple[tuple[str, str], ...] = (
    ("germination_below_85", "Germinasi di bawah 85%"),
    ("seed_not_found", "Benih tidak ditemukan (dimakan hewan)"),
    ("seed_not_grow_soil", "Benih tidak tumbuh (kondisi tanah)"),
    ("seed_damaged_chemical", "Benih rusak oleh pupuk/pestisida"),
    ("seed_damaged_insect", "Benih rusak oleh serangga"),
    ("fungal_infection", "Infeksi jamur (genangan air)"),
    ("seed_excavated", "Benih tergali oleh hewan"),
    ("additional_seed_treatment", "Penambahan seed treatment"),
    ("seed_soaking", "Perendaman benih"),
    ("planting_depth_over_7cm", "Kedalaman tanam >7cm"),
)

CATEGORY_NONE = "Tidak ada masalah"
CATEGORY_SEED_QUALITY = "Masalah Kualitas Benih"
CATEGORY_CULTIVATION = "Masalah Budidaya/Lingkungan"
CATEGORY_ANIMAL = "Masalah Eksternal (Hewan)"
CATEGORY_CHEMICAL = "Masalah Treatment/Kimia"
CATEGORY_OTHER = "Masalah Germinasi Lainnya"

_STATUS_CONFIG = {
    "Valid": {"label": "Komplain Diterima", "color": "green"},
    "Invalid": {"label": "Komplain Ditolak", "color": "red"},
}

_CONCLUSIONS = {
    "Valid": "Masalah terbukti terkait dengan kualitas produk. Komplain disetujui untuk proses penggantian.",
    "Invalid": "Masalah disebabkan oleh faktor eksternal atau budidaya. Komplain tidak dapat diproses lebih lanjut.",
}

_MONTHS_ID = (
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
)


@dataclass(frozen=True)
class ObservationSummary:
    status: SummaryStatus
    status_label: str
    status_color: str
    observer_name: str
    observation_date: str
    issue_category: str
    issue_severity: Severity
    total_issues_found: int
    issues_list: list[str] = field(default_factory=list)
    has_proof: bool = False
    has_packaging: bool = False
    replacement_proposal: str | None = None
    days_since_planting: int | None = None
    is_expired: bool = False
    short_summary: str = ""
    detailed_summary: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


PENDING_SUMMARY = ObservationSummary(
    status="Pending",
    status_label="Menunggu Observasi",
    status_color="yellow",
    observer_name="Belum ditentukan",
    observation_date="-",
    issue_category="Belum diobservasi",
    issue_severity="low",
    total_issues_found=0,
    short_summary="Menunggu hasil observasi lapangan",
    detailed_summary=(
        "Observasi lapangan belum dilakukan. "
        "Menunggu kunjungan tim lapangan untuk verifikasi komplain."
    ),
)


def _get(observation: Any, key: str):
    if isinstance(observation, Mapping):
        return observation.get(key)
    return getattr(observation, key, None)


def _is_yes(observation: Any, key: str) -> bool:
    return _get(observation, key) == YES


def _as_date(value) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value))
    except ValueError:
        return None


def format_date_id(value) -> str:
    """Indonesian long date ("17 Oktober 2026"); "-" when absent."""
    day = _as_date(value)
    if day is None:
        return "-"
    return f"{day.day} {_MONTHS_ID[day.month - 1]} {day.year}"


def categorize(observation: Any) -> tuple[str, Severity]:
    if not _is_yes(observation, "is_germination_issue"):
        return CATEGORY_NONE, "low"
    if _is_yes(observation, "germination_below_85"):
        return CATEGORY_SEED_QUALITY, "high"
    if any(_is_yes(observation, k) for k in ("seed_not_grow_soil", "fungal_infection", "planting_depth_over_7cm")):
        return CATEGORY_CULTIVATION, "medium"
    if any(_is_yes(observation, k) for k in ("seed_not_found", "seed_excavated")):
        return CATEGORY_ANIMAL, "low"
    if any(_is_yes(observation, k) for k in ("seed_damaged_chemical", "additional_seed_treatment")):
        return CATEGORY_CHEMICAL, "medium"
    return CATEGORY_OTHER, "medium"


def summarize(observation: Any, *, today: date | None = None) -> ObservationSummary:
    """Summary for an observation record (ORM row, mapping, or None)."""
    if observation is None or not _get(observation, "observation_result"):
        return PENDING_SUMMARY

    status: SummaryStatus = "Valid" if _get(observation, "observation_result") == "Valid" else "Invalid"
    config = _STATUS_CONFIG[status]

    issues = [label for key, label in ISSUE_CRITERIA if _is_yes(observation, key)]
    category, severity = categorize(observation)

    has_proof = _is_yes(observation, "has_purchase_proof")
    has_packaging = _is_yes(observation, "has_packaging_evidence")

    qty = _get(observation, "replacement_qty")
    hybrid = _get(observation, "replacement_hybrid")
    replacement = f"{qty} unit {hybrid}" if status == "Valid" and qty and hybrid else None

    planting = _as_date(_get(observation, "planting_date"))
    days_since_planting = None
    if planting is not None:
        days_since_planting = ((today or utcnow().date()) - planting).days

    expiry = _as_date(_get(observation, "label_expired_date"))
    purchase = _as_date(_get(observation, "purchase_date"))
    is_expired = bool(expiry and purchase and purchase > expiry)

    if status == "Valid":
        short = "Komplain disetujui untuk proses penggantian" + (f": {replacement}" if replacement else "")
    else:
        short = f"Komplain ditolak - {category}"

    observer_name = _get(observation, "observer_name")
    observation_date = format_date_id(_get(observation, "observation_date"))

    parts = [
        f"Observasi dilakukan oleh {observer_name or 'Observer'} "
        f"({_get(observation, 'observer_position') or '-'}) pada {observation_date}."
    ]
    if issues:
        parts.append(f"\n**Kategori Masalah:** {category}")
        parts.append(f"**Masalah Ditemukan:** {len(issues)} dari {len(ISSUE_CRITERIA)} kriteria pemeriksaan")
        parts.append("\n**Detail Temuan:**")
        parts.extend(f"• {issue}" for issue in issues)

    parts.append("\n**Kelengkapan Bukti:**")
    parts.append(f"• Bukti pembelian: {'✓ Tersedia' if has_proof else '✗ Tidak tersedia'}")
    parts.append(f"• Kemasan produk: {'✓ Tersedia' if has_packaging else '✗ Tidak tersedia'}")

    if days_since_planting is not None:
        parts.append(f"\n**Timeline:** {days_since_planting} hari sejak penanaman")
    if is_expired:
        parts.append("\n⚠️ **Catatan Penting:** Benih dibeli setelah melewati tanggal expired pada label")
    if replacement:
        parts.append(f"\n**Usulan Penggantian:** {replacement}")

    parts.append(f"\n**Kesimpulan:** {_CONCLUSIONS[status]}")

    notes = _get(observation, "general_notes")
    if notes:
        parts.append(f"\n**Catatan Tambahan:**\n{notes}")

    return ObservationSummary(
        status=status,
        status_label=config["label"],
        status_color=config["color"],
        observer_name=observer_name or "Belum ditentukan",
        observation_date=observation_date,
        issue_category=category,
        issue_severity=severity,
        total_issues_found=len(issues),
        issues_list=issues,
        has_proof=has_proof,
        has_packaging=has_packaging,
        replacement_proposal=replacement,
        days_since_planting=days_since_planting,
        is_expired=is_expired,
        short_summary=short,
        detailed_summary="\n".join(parts),
    )
