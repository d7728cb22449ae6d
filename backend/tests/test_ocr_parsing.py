"""
Tests for OCR text parsing — pure text processing with no external dependencies.

Covers:
- parse_lines: amount extraction, fee filtering, label derivation, total detection
- score_total: total-line confidence rules
- select_total: best-total selection and fallbacks
- parse_amount: token cleanup
"""
import pytest
from models.schemas import ParsedLines, ReceiptLine, TotalCandidate
from services.ocr_service import (
    parse_lines,
    parse_amount,
    score_total,
    select_total,
    is_total_line,
)


# ── parse_amount ─────────────────────────────────────────────────────────────

class TestParseAmount:

    def test_plain_integer(self):
        assert parse_amount("120") == 120.0

    def test_rupee_symbol(self):
        assert parse_amount("₹450.00") == 450.0

    def test_rupee_symbol_with_space(self):
        assert parse_amount("₹ 99") == 99.0

    def test_comma_decimal(self):
        assert parse_amount("85,50") == 85.5

    def test_zero_rejected(self):
        assert parse_amount("0.00") is None

    def test_garbage_rejected(self):
        assert parse_amount("₹") is None


# ── parse_lines ──────────────────────────────────────────────────────────────

class TestParseLines:

    def test_reference_receipt(self):
        text = "Milk 120\nTotal to Pay ₹450.00\nDelivery Fee 20"
        result = parse_lines(text, total_only=True, ignore_fees=True)
        assert len(result.totals) == 1
        assert result.totals[0].amount == 450.00
        assert result.totals[0].score == 4
        # milk dropped by total_only, delivery fee dropped by ignore_fees
        assert [i.line for i in result.items] == ["Total to Pay ₹450.00"]

    def test_all_items_when_not_total_only(self):
        text = "Milk 120\nBread 45\nTotal 165"
        result = parse_lines(text, total_only=False, ignore_fees=True)
        assert [i.amount for i in result.items] == [120.0, 45.0, 165.0]
        assert [t.amount for t in result.totals] == [165.0]

    def test_fees_kept_when_not_ignored(self):
        text = "Delivery Fee 20\nHandling charge 5"
        result = parse_lines(text, total_only=False, ignore_fees=False)
        assert [i.amount for i in result.items] == [20.0, 5.0]

    def test_fee_keywords_filtered(self):
        text = "GST 18.00\nCoupon discount 50\nYou saved 30\nTip 10\nPlatform fee 2"
        result = parse_lines(text, total_only=False, ignore_fees=True)
        assert result.items == []

    def test_free_lines_always_skipped(self):
        text = "Delivery FREE 0\nFree Carry Bag 1"
        result = parse_lines(text, total_only=False, ignore_fees=False)
        assert result.items == []

    def test_short_lines_discarded(self):
        result = parse_lines("12\n 9 \nab", total_only=False)
        assert result.items == []

    def test_line_without_amount_skipped(self):
        result = parse_lines("THANK YOU FOR SHOPPING", total_only=False)
        assert result.items == []

    def test_last_amount_on_line_wins(self):
        result = parse_lines("2 x Bananas 40.00", total_only=False)
        assert result.items[0].amount == 40.0
        assert result.items[0].label == "2 x Bananas"

    def test_label_strips_amount_and_collapses_spaces(self):
        result = parse_lines("Amul   Butter    ₹56.00", total_only=False)
        assert result.items[0].label == "Amul Butter"

    def test_label_falls_back_to_line(self):
        result = parse_lines("₹249", total_only=False)
        assert result.items[0].label == "₹249"
        assert result.items[0].amount == 249.0

    def test_comma_decimal_amount(self):
        result = parse_lines("Paneer 200g 85,50", total_only=False)
        assert result.items[0].amount == 85.5

    def test_non_ascii_digits_not_amounts(self):
        result = parse_lines("Total ०४५०\nMilk ४५ 120", total_only=False)
        assert result.totals == []
        assert [i.amount for i in result.items] == [120.0]

    def test_zero_amount_skipped(self):
        result = parse_lines("Bag charge 0.00", total_only=False)
        assert result.items == []

    def test_windows_line_endings(self):
        result = parse_lines("Milk 120\r\nBread 45\r\n", total_only=False)
        assert len(result.items) == 2

    def test_order_preserved(self):
        text = "Grand Total 500\nItem Total 450\nTo Pay 480"
        result = parse_lines(text)
        assert [t.line for t in result.totals] == ["Grand Total 500", "Item Total 450", "To Pay 480"]
        assert [t.score for t in result.totals] == [3, 2, 4]

    def test_one_entry_per_line(self):
        result = parse_lines("Total 100 200 300", total_only=False)
        assert len(result.items) == 1
        assert len(result.totals) == 1
        assert result.totals[0].amount == 300.0

    def test_empty_text(self):
        result = parse_lines("")
        assert result.items == [] and result.totals == []

    def test_stateless(self):
        text = "Milk 120\nTotal 120"
        assert parse_lines(text) == parse_lines(text)


# ── score_total ──────────────────────────────────────────────────────────────

class TestScoreTotal:

    @pytest.mark.parametrize("line,score", [
        ("Total Bill ₹480", 4),
        ("To Pay 480", 4),
        ("Amount Due 480", 4),
        ("Net Payable 480", 4),
        ("Grand Total 480", 3),
        ("Item Total 450", 2),
        ("Subtotal 450", 1),
        ("Milk 120", 0),
    ])
    def test_rules(self, line, score):
        assert score_total(line) == score

    def test_first_rule_not_cumulative(self):
        assert score_total("Grand Total Payable 480") == 4

    def test_is_total_line(self):
        assert is_total_line("GRAND 480")
        assert not is_total_line("Amount Due 480")


# ── select_total ─────────────────────────────────────────────────────────────

class TestSelectTotal:

    def test_highest_score_wins(self):
        parsed = parse_lines("Item Total 450\nGrand Total 500\nTo Pay 480")
        assert select_total(parsed) == 480.0

    def test_tie_broken_by_line_text(self):
        parsed = ParsedLines(totals=[
            TotalCandidate(line="To Pay 480", amount=480.0, score=4),
            TotalCandidate(line="Amount Due 470", amount=470.0, score=4),
        ])
        assert select_total(parsed) == 470.0

    def test_falls_back_to_max_item(self):
        parsed = ParsedLines(items=[
            ReceiptLine(line="Milk 120", label="Milk", amount=120.0),
            ReceiptLine(line="Rice 300", label="Rice", amount=300.0),
        ])
        assert select_total(parsed) == 300.0

    def test_no_candidates_is_none(self):
        assert select_total(ParsedLines()) is None

    def test_no_total_found_from_text(self):
        assert select_total(parse_lines("Thank you\nVisit again")) is None
