"""
Observation summary tests.

Verifies:
- Missing record or missing result reads as Pending
- Category/severity rule order
- Replacement proposal only for Valid results
- Timeline, expiry and the detailed summary text
"""

from datetime import date

from seedcare.services.observation_summary import (
    CATEGORY_ANIMAL,
    CATEGORY_CHEMICAL,
    CATEGORY_CULTIVATION,
    CATEGORY_NONE,
    CATEGORY_OTHER,
    CATEGORY_SEED_QUALITY,
    PENDING_SUMMARY,
    categorize,
    format_date_id,
    summarize,
)


TODAY = date(2026, 10, 17)


def _observation(**overrides):
    data = {
        "observer_name": "Andi",
        "observer_position": "Field Officer",
        "observation_date": "2026-10-01",
        "observation_result": "Valid",
        "is_germination_issue": "Ya",
        "has_purchase_proof": "Ya",
        "has_packaging_evidence": "Tidak",
    }
    data.update(overrides)
    return data


# =============================================================================
# PENDING
# =============================================================================


class TestPending:
    def test_none_is_pending(self):
        assert summarize(None) == PENDING_SUMMARY

    def test_missing_result_is_pending(self):
        summary = summarize({"observer_name": "Andi", "germination_below_85": "Ya"})
        assert summary.status == "Pending"
        assert summary.status_label == "Menunggu Observasi"
        assert summary.observer_name == "Belum ditentukan"
        assert summary.issue_category == "Belum diobservasi"
        assert summary.total_issues_found == 0

    def test_empty_result_is_pending(self):
        assert summarize(_observation(observation_result="")).status == "Pending"


# =============================================================================
# CATEGORY / SEVERITY
# =============================================================================


class TestCategorize:
    def test_not_germination_issue(self):
        assert categorize({"is_germination_issue": "Tidak", "germination_below_85": "Ya"}) == (CATEGORY_NONE, "low")

    def test_seed_quality_wins_over_everything(self):
        data = {"is_germination_issue": "Ya", "germination_below_85": "Ya", "fungal_infection": "Ya", "seed_excavated": "Ya"}
        assert categorize(data) == (CATEGORY_SEED_QUALITY, "high")

    def test_cultivation(self):
        data = {"is_germination_issue": "Ya", "planting_depth_over_7cm": "Ya", "seed_not_found": "Ya"}
        assert categorize(data) == (CATEGORY_CULTIVATION, "medium")

    def test_animal(self):
        data = {"is_germination_issue": "Ya", "seed_excavated": "Ya", "seed_damaged_chemical": "Ya"}
        assert categorize(data) == (CATEGORY_ANIMAL, "low")

    def test_chemical(self):
        data = {"is_germination_issue": "Ya", "additional_seed_treatment": "Ya"}
        assert categorize(data) == (CATEGORY_CHEMICAL, "medium")

    def test_other(self):
        data = {"is_germination_issue": "Ya", "seed_soaking": "Ya"}
        assert categorize(data) == (CATEGORY_OTHER, "medium")


# =============================================================================
# VERDICTS
# =============================================================================


class TestValidSummary:
    def test_valid_with_replacement(self):
        summary = summarize(
            _observation(germination_below_85="Ya", replacement_qty=5, replacement_hybrid="ADV 777"),
            today=TODAY,
        )
        assert summary.status == "Valid"
        assert summary.status_label == "Komplain Diterima"
        assert summary.status_color == "green"
        assert summary.issue_category == CATEGORY_SEED_QUALITY
        assert summary.issue_severity == "high"
        assert summary.replacement_proposal == "5 unit ADV 777"
        assert summary.short_summary == "Komplain disetujui untuk proses penggantian: 5 unit ADV 777"
        assert "**Usulan Penggantian:** 5 unit ADV 777" in summary.detailed_summary

    def test_valid_without_replacement(self):
        summary = summarize(_observation(), today=TODAY)
        assert summary.replacement_proposal is None
        assert summary.short_summary == "Komplain disetujui untuk proses penggantian"

    def test_issues_listed_in_display_order(self):
        summary = summarize(
            _observation(planting_depth_over_7cm="Ya", germination_below_85="Ya", seed_soaking="Tidak"),
            today=TODAY,
        )
        assert summary.total_issues_found == 2
        assert summary.issues_list == ["Germinasi di bawah 85%", "Kedalaman tanam >7cm"]
        assert "**Masalah Ditemukan:** 2 dari 10 kriteria pemeriksaan" in summary.detailed_summary
        assert "• Germinasi di bawah 85%" in summary.detailed_summary


class TestInvalidSummary:
    def test_invalid_never_proposes_replacement(self):
        summary = summarize(
            _observation(observation_result="Invalid", fungal_infection="Ya", replacement_qty=3, replacement_hybrid="ADV 777"),
            today=TODAY,
        )
        assert summary.status == "Invalid"
        assert summary.status_label == "Komplain Ditolak"
        assert summary.status_color == "red"
        assert summary.replacement_proposal is None
        assert summary.short_summary == f"Komplain ditolak - {CATEGORY_CULTIVATION}"
        assert "Usulan Penggantian" not in summary.detailed_summary

    def test_unrecognized_result_reads_as_invalid(self):
        assert summarize(_observation(observation_result="Maybe"), today=TODAY).status == "Invalid"


# =============================================================================
# EVIDENCE / TIMELINE
# =============================================================================


class TestEvidenceAndTimeline:
    def test_evidence_flags(self):
        summary = summarize(_observation(), today=TODAY)
        assert summary.has_proof is True
        assert summary.has_packaging is False
        assert "• Bukti pembelian: ✓ Tersedia" in summary.detailed_summary
        assert "• Kemasan produk: ✗ Tidak tersedia" in summary.detailed_summary

    def test_days_since_planting(self):
        summary = summarize(_observation(planting_date="2026-10-07"), today=TODAY)
        assert summary.days_since_planting == 10
        assert "**Timeline:** 10 hari sejak penanaman" in summary.detailed_summary

    def test_no_planting_date(self):
        assert summarize(_observation(), today=TODAY).days_since_planting is None

    def test_expired_when_bought_after_label_date(self):
        summary = summarize(
            _observation(label_expired_date="2026-06-30", purchase_date="2026-07-15"),
            today=TODAY,
        )
        assert summary.is_expired is True
        assert "Benih dibeli setelah melewati tanggal expired pada label" in summary.detailed_summary

    def test_not_expired_on_same_day(self):
        summary = summarize(
            _observation(label_expired_date="2026-06-30", purchase_date="2026-06-30"),
            today=TODAY,
        )
        assert summary.is_expired is False

    def test_header_and_notes(self):
        summary = summarize(_observation(general_notes="Lahan tergenang"), today=TODAY)
        assert summary.detailed_summary.startswith(
            "Observasi dilakukan oleh Andi (Field Officer) pada 1 Oktober 2026."
        )
        assert summary.detailed_summary.endswith("**Catatan Tambahan:**\nLahan tergenang")
        assert summary.observation_date == "1 Oktober 2026"

    def test_to_dict_uses_snake_case(self):
        data = summarize(_observation(), today=TODAY).to_dict()
        assert data["status"] == "Valid"
        assert "short_summary" in data
        assert "issues_list" in data


def test_format_date_id():
    assert format_date_id(date(2026, 3, 5)) == "5 Maret 2026"
    assert format_date_id("2026-12-31") == "31 Desember 2026"
    assert format_date_id(None) == "-"
    assert format_date_id("") == "-"
