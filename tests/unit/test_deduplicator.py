import pytest

from finance_tracker.reconciliation.deduplicator import dedupe, is_duplicate, normalize_merchant

@pytest.mark.unit
class TestIsDuplicate:

    def test_same_day_amount_and_merchant(self, make_transaction):
        existing = make_transaction("Netflix", "15.99", "2024-03-01")
        candidate = make_transaction("Netflix", "15.99", "2024-03-01")

        assert is_duplicate(candidate, existing)

    def test_time_of_day_is_ignored(self, make_transaction):
        existing = make_transaction("Netflix", "15.99", "2024-03-01T08:00:00")
        candidate = make_transaction("Netflix", "15.99", "2024-03-01T23:59:00")

        assert is_duplicate(candidate, existing)

    def test_different_day_is_not_duplicate(self, make_transaction):
        existing = make_transaction("Netflix", "15.99", "2024-03-01")
        candidate = make_transaction("Netflix", "15.99", "2024-03-02")

        assert not is_duplicate(candidate, existing)

    def test_merchant_case_and_whitespace_ignored(self, make_transaction):
        existing = make_transaction("Netflix", "15.99", "2024-03-01")
        candidate = make_transaction("  NETFLIX ", "15.99", "2024-03-01")

        assert is_duplicate(candidate, existing)

    def test_different_merchant_same_day_and_amount_survives(self, make_transaction):
        existing = make_transaction("Coffee Shop", "4.50", "2024-03-01")
        candidate = make_transaction("Bakery", "4.50", "2024-03-01")

        assert not is_duplicate(candidate, existing)

    def test_merchant_spelling_drift_is_not_duplicate(self, make_transaction):
        existing = make_transaction("Netflix", "15.99", "2024-03-01")
        candidate = make_transaction("Netflix.com", "15.99", "2024-03-01")

        assert not is_duplicate(candidate, existing)

    @pytest.mark.parametrize("amount,expected", [
        ("100.004", True),
        ("99.995", True),
        ("100.02", False),
        ("100.01", False),
    ])
    def test_cent_level_tolerance(self, make_transaction, amount, expected):
        existing = make_transaction("Acme", "100.00", "2024-03-01")
        candidate = make_transaction("Acme", amount, "2024-03-01")

        assert is_duplicate(candidate, existing) is expected

    def test_empty_merchant_matches_only_empty_merchant(self, make_transaction):
        empty = make_transaction("", "10.00", "2024-03-01")
        named = make_transaction("Acme", "10.00", "2024-03-01")

        assert is_duplicate(make_transaction("  ", "10.00", "2024-03-01"), empty)
        assert not is_duplicate(empty, named)
        assert not is_duplicate(named, empty)

    def test_normalize_merchant(self):
        assert normalize_merchant("  Acme Rent\t") == "acme rent"


@pytest.mark.unit
class TestDedupe:

    def test_empty_incoming_yields_empty(self, make_transaction):
        assert dedupe([make_transaction()], []) == []

    def test_empty_history_keeps_everything(self, make_transaction):
        batch = [make_transaction("A", "1"), make_transaction("B", "2")]

        assert dedupe([], batch) == batch

    def test_result_is_ordered_subsequence(self, make_transaction):
        history = [make_transaction("B", "2.00", "2024-03-02")]
        batch = [
            make_transaction("A", "1.00", "2024-03-01"),
            make_transaction("b", "2.00", "2024-03-02"),
            make_transaction("C", "3.00", "2024-03-03"),
        ]

        result = dedupe(history, batch)

        assert result == [batch[0], batch[2]]
        assert all(any(r is b for b in batch) for r in result)

    def test_idempotent(self, make_transaction):
        history = [make_transaction("A", "1.00"), make_transaction("B", "2.00")]
        batch = [
            make_transaction("a", "1.00"),
            make_transaction("C", "3.00"),
            make_transaction("D", "4.00"),
        ]

        once = dedupe(history, batch)

        assert dedupe(history, once) == once

    def test_candidates_are_not_compared_with_each_other(self, make_transaction):
        batch = [make_transaction("A", "1.00"), make_transaction("A", "1.00")]

        assert len(dedupe([], batch)) == 2

    def test_inputs_are_not_modified(self, make_transaction):
        history = [make_transaction("A", "1.00")]
        batch = [make_transaction("A", "1.00"), make_transaction("B", "2.00")]

        dedupe(history, batch)

        assert len(history) == 1
        assert len(batch) == 2
