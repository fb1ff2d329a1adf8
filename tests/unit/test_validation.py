"""Unit tests for validation utilities."""

import pytest

from indexsync.utils.exceptions import (
    IndexingTimeout,
    ReceiptTimeout,
    SubmissionError,
    TransientFetchError,
    is_transient,
)
from indexsync.utils.validation import (
    normalize_registry_id,
    normalize_transaction_hash,
    validate_address,
    validate_transaction_hash,
)


class TestTransactionHashValidation:
    """Tests for transaction hash validation."""

    def test_valid_hash(self, sample_transaction_hash):
        assert validate_transaction_hash(sample_transaction_hash)

    @pytest.mark.parametrize(
        "tx_hash",
        ["", "0x1234", "0x" + "z" * 64, "1" * 66, "0x" + "1" * 65],
    )
    def test_invalid_hashes(self, tx_hash):
        assert not validate_transaction_hash(tx_hash)

    def test_normalize_adds_prefix_and_lowercases(self):
        raw = "AB" * 32
        assert normalize_transaction_hash(raw) == "0x" + "ab" * 32

    def test_normalize_rejects_malformed(self):
        with pytest.raises(ValueError):
            normalize_transaction_hash("0xnothex")


class TestAddressValidation:
    """Tests for address validation."""

    def test_valid_address(self):
        assert validate_address("0x742d35Cc6634C0532925a3b844Bc9e7595f0bEb0")

    @pytest.mark.parametrize("address", ["", "0x1234", "1" * 42, "0x" + "g" * 40])
    def test_invalid_addresses(self, address):
        assert not validate_address(address)

    def test_registry_id_normalized(self):
        assert normalize_registry_id(" 0xABC ") == "0xabc"

    def test_opaque_registry_id_kept(self):
        assert normalize_registry_id("topic-schemes") == "topic-schemes"

    def test_empty_registry_id_rejected(self):
        with pytest.raises(ValueError):
            normalize_registry_id("")


class TestErrorClassification:
    """Tests for is_transient."""

    @pytest.mark.parametrize(
        "error",
        [TransientFetchError("x"), TimeoutError(), ConnectionError(), OSError()],
    )
    def test_transient(self, error):
        assert is_transient(error)

    @pytest.mark.parametrize(
        "error",
        [
            SubmissionError("x"),
            ReceiptTimeout(1.0),
            IndexingTimeout(1.0, 5),
            ValueError("x"),
        ],
    )
    def test_not_transient(self, error):
        assert not is_transient(error)
