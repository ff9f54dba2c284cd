import pytest
from dataclasses import replace

from finance_tracker.domain.enums import TransactionType
from finance_tracker.repositories.base import TransactionNotFoundError
from finance_tracker.repositories.store import TransactionStore

from conftest import InMemoryTransactionRepository


@pytest.mark.unit
class TestTransactionStoreLoading:

    def test_autoload_reads_repository(self, make_transaction):
        rent = make_transaction("Acme Rent", 1200)
        store = TransactionStore(InMemoryTransactionRepository([rent]))

        assert store.transactions == (rent,)
        assert len(store) == 1
        assert store.version == 0

    def test_without_autoload_store_is_empty(self, make_transaction):
        repo = InMemoryTransactionRepository([make_transaction()])

        store = TransactionStore(repo, autoload=False)

        assert len(store) == 0

    def test_sorted_by_date_is_newest_first(self, make_transaction):
        older = make_transaction(date="2024-01-01")
        newer = make_transaction(date="2024-02-01")
        store = TransactionStore(InMemoryTransactionRepository([older, newer]))

        assert store.sorted_by_date() == [newer, older]
        # stored order untouched
        assert store.transactions == (older, newer)


@pytest.mark.unit
class TestTransactionStoreMutations:

    def test_add_prepends_and_saves(self, memory_repository, make_transaction):
        store = TransactionStore(memory_repository)
        first = make_transaction("Netflix")
        second = make_transaction("Netflix")

        store.add(first)
        store.add(second)

        # Single adds skip deduplication
        assert store.transactions == (second, first)
        assert memory_repository.saved == [second, first]
        assert store.version == 2

    def test_merge_saves_accepted_records(self, memory_repository, make_transaction):
        store = TransactionStore(memory_repository)
        batch = [make_transaction("Netflix"), make_transaction("Spotify", "9.99")]

        result = store.merge(batch)

        assert result.accepted == batch
        assert list(store.transactions) == batch
        assert memory_repository.save_count == 1
        assert store.version == 1

    def test_merge_of_duplicates_only_does_not_save(self, make_transaction):
        existing = make_transaction("Netflix")
        repo = InMemoryTransactionRepository([existing])
        store = TransactionStore(repo)

        result = store.merge([make_transaction("netflix ")])

        assert result.accepted == []
        assert len(result.skipped) == 1
        assert repo.save_count == 0
        assert store.version == 0

    def test_preview_merge_leaves_store_untouched(self, memory_repository, make_transaction):
        store = TransactionStore(memory_repository)

        result = store.preview_merge([make_transaction()])

        assert len(result.accepted) == 1
        assert len(store) == 0
        assert memory_repository.save_count == 0

    def test_update_replaces_in_place(self, make_transaction):
        first = make_transaction("Netflix")
        second = make_transaction("Spotify")
        repo = InMemoryTransactionRepository([first, second])
        store = TransactionStore(repo)

        edited = replace(first, type=TransactionType.FIXED_BILL)
        store.update(edited)

        assert store.transactions == (edited, second)
        assert store.get(first.id).type == TransactionType.FIXED_BILL
        assert repo.saved == [edited, second]

    def test_update_unknown_raises(self, memory_repository, make_transaction):
        store = TransactionStore(memory_repository)

        with pytest.raises(TransactionNotFoundError):
            store.update(make_transaction())

        assert store.version == 0

    def test_delete(self, make_transaction):
        txn = make_transaction()
        repo = InMemoryTransactionRepository([txn])
        store = TransactionStore(repo)

        assert store.delete(txn.id) is True
        assert store.delete(txn.id) is False
        assert len(store) == 0
        assert store.get(txn.id) is None
        assert store.version == 1

    def test_failed_save_keeps_previous_state(self, mocker, make_transaction):
        repo = InMemoryTransactionRepository()
        store = TransactionStore(repo)
        mocker.patch.object(repo, "save_all", side_effect=OSError("disk full"))

        with pytest.raises(OSError):
            store.add(make_transaction())

        assert len(store) == 0
        assert store.version == 0
