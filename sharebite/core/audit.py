"""
Audit trail
Lifecycle writes append a document to the `logs` collection inside the same
transaction as the write they describe.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from .database import Transaction, new_document_id, server_timestamp

LOGS_COLLECTION = "logs"


def write_log(txn: Transaction, action: str, actor_id: Optional[str],
              detail: Dict[str, Any], now: Optional[datetime] = None) -> str:
    """Record an audit entry and return its id"""
    log_id = new_document_id()
    txn.set(LOGS_COLLECTION, log_id, {
        "action": action,
        "actorId": actor_id,
        "detail": detail,
        "createdAt": (now or server_timestamp()).isoformat(),
    })
    return log_id
