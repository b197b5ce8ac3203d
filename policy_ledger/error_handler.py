"""Error handling helpers for the ledger REST layer."""
from typing import Any, Dict, Optional
import logging

from policy_ledger.ledger.errors import ClassifiedFailure

logger = logging.getLogger(__name__)


class ErrorHandler:
    status_code = 500

    def handle_failure(self, exc: ClassifiedFailure, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if context:
            logger.error("Ledger call failed (%s) %s: %s", exc.kind.value, context, exc.message)
        else:
            logger.error("Ledger call failed (%s): %s", exc.kind.value, exc.message)
        payload = {"error": exc.message, "kind": exc.kind.value}
        if exc.detail:
            payload["detail"] = exc.detail
        return payload
