"""
Unit tests for the exception hierarchy helpers.
"""

from badgeledger.core.exceptions import (
    AuthorizationError,
    ContractRevertError,
    DuplicateEntryError,
    DuplicateRedemptionError,
    InsufficientEntryFeeError,
    InvalidSignatureError,
    MalformedSignatureError,
    RedemptionError,
    SignatureReplayError,
    StorageError,
    TournamentError,
    get_error_context,
    is_recoverable_error,
)


def test_redemption_errors_share_base():
    for cls in (DuplicateRedemptionError, SignatureReplayError, InvalidSignatureError):
        assert issubclass(cls, RedemptionError)
    assert issubclass(MalformedSignatureError, InvalidSignatureError)


def test_only_storage_is_recoverable():
    assert is_recoverable_error(StorageError("db down"))
    assert not is_recoverable_error(AuthorizationError("no"))
    assert not is_recoverable_error(SignatureReplayError("used"))
    assert is_recoverable_error(ConnectionError())
    assert not is_recoverable_error(ValueError())


def test_reason_defaults_to_message():
    assert RedemptionError("Already redeemed").reason == "Already redeemed"


def test_error_context():
    context = get_error_context(
        InvalidSignatureError("bad", reason="invalid signature", details={"recovered": "0x1"})
    )
    assert context["error_type"] == "InvalidSignatureError"
    assert context["revert_reason"] == "invalid signature"
    assert context["details"] == {"recovered": "0x1"}
    assert context["recoverable"] is False


def test_tournament_reverts_carry_reason():
    for cls in (InsufficientEntryFeeError, DuplicateEntryError):
        assert issubclass(cls, TournamentError)
    assert issubclass(TournamentError, ContractRevertError)
    assert not issubclass(TournamentError, RedemptionError)

    context = get_error_context(DuplicateEntryError("Already entered", reason="already entered"))
    assert context["revert_reason"] == "already entered"
