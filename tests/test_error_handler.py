from policy_ledger.error_handler import ErrorHandler
from policy_ledger.ledger.errors import ChaincodeRejectedError, CommitFailureError, LedgerTimeoutError


def test_handle_failure_returns_payload():
    eh = ErrorHandler()
    out = eh.handle_failure(ChaincodeRejectedError("policy 3 does not exist"), context={"path": "/policy/3"})
    assert out == {"error": "policy 3 does not exist", "kind": "ChaincodeRejected"}
    assert eh.status_code == 500


def test_handle_failure_includes_detail():
    out = ErrorHandler().handle_failure(LedgerTimeoutError("Endorse exceeded its 15s deadline", phase="Endorse", detail="deadline"))
    assert out["kind"] == "Timeout"
    assert out["detail"] == "deadline"


def test_commit_failure_exposes_validation_code():
    exc = CommitFailureError("tx abc failed", transaction_id="abc", validation_code="MVCC_READ_CONFLICT")
    out = ErrorHandler().handle_failure(exc)
    assert out["detail"] == "MVCC_READ_CONFLICT"
    assert exc.to_dict() == {"kind": "CommitFailure", "message": "tx abc failed", "detail": "MVCC_READ_CONFLICT"}
