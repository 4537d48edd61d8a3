"""
Allocation service
Resolves competing shelter requests for one food item.

Approving a request is the only multi-document write in the lifecycle:
the chosen request is approved, every other `requested` sibling is declined
and the food item is marked unavailable, all in one transaction. The food
item's availability is re-read inside that transaction, so of two concurrent
approvals exactly one commits and the other gets AlreadyAllocatedError.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from ..core.audit import write_log
from ..core.database import DocumentStore, document_store, server_timestamp
from ..core.exceptions import AlreadyAllocatedError, InvalidTransitionError, NotFoundError
from ..models.food_item import FOOD_ITEMS_COLLECTION
from ..models.food_request import REQUESTS_COLLECTION, RequestStatus, can_transition

logger = logging.getLogger(__name__)


class AllocationService:
    """Allocation coordinator"""

    def __init__(self, store: Optional[DocumentStore] = None,
                 clock: Callable[[], datetime] = server_timestamp):
        self.db = store or document_store
        self.clock = clock

    def approve(self, request_id: str, actor_id: Optional[str] = None) -> int:
        """
        Approve a request and decline its competitors

        Args:
            request_id: the winning request
            actor_id: reviewing restaurant, for the audit trail

        Returns:
            int: number of sibling requests declined

        Raises:
            NotFoundError: request or its food item does not exist
            AlreadyAllocatedError: the food item was already allocated
            InvalidTransitionError: request is not in `requested`
            CommitFailedError: the transaction did not apply
        """
        with self.db.transaction() as txn:
            request = txn.get(REQUESTS_COLLECTION, request_id)
            if request is None:
                raise NotFoundError("Request not found", details={"request_id": request_id})

            food_item_id = request["foodItemId"]
            item = txn.get(FOOD_ITEMS_COLLECTION, food_item_id)
            if item is None:
                raise NotFoundError("Food item not found", details={"food_item_id": food_item_id})

            if not item.get("isAvailable"):
                logger.warning("Rejected approval of request %s: food item %s already allocated",
                               request_id, food_item_id)
                raise AlreadyAllocatedError(
                    "This food item has already been allocated",
                    details={"food_item_id": food_item_id, "request_id": request_id},
                )

            current = request.get("status")
            if not can_transition(current, RequestStatus.APPROVED.value):
                logger.warning("Rejected approval of request %s in status %s", request_id, current)
                raise InvalidTransitionError(current, RequestStatus.APPROVED.value)

            now = self.clock()
            reviewed_at = now.isoformat()
            txn.update(REQUESTS_COLLECTION, request_id, {
                "status": RequestStatus.APPROVED.value,
                "reviewedAt": reviewed_at,
            }, precondition={"status": RequestStatus.REQUESTED.value})

            siblings = txn.query(REQUESTS_COLLECTION, [
                ("foodItemId", "==", food_item_id),
                ("status", "==", RequestStatus.REQUESTED.value),
            ])
            declined = [doc["id"] for doc in siblings if doc["id"] != request_id]
            for sibling_id in declined:
                txn.update(REQUESTS_COLLECTION, sibling_id, {
                    "status": RequestStatus.DECLINED.value,
                    "reviewedAt": reviewed_at,
                })

            txn.update(FOOD_ITEMS_COLLECTION, food_item_id, {
                "isAvailable": False,
                "updatedAt": reviewed_at,
            }, precondition={"isAvailable": True})

            write_log(txn, "request_approve", actor_id, {
                "request_id": request_id,
                "food_item_id": food_item_id,
                "shelter_id": request.get("shelterId"),
                "declined_request_ids": declined,
            }, now=now)

        logger.info("Request %s approved for food item %s; %d competing request(s) declined",
                    request_id, food_item_id, len(declined))
        return len(declined)

    def decline(self, request_id: str, actor_id: Optional[str] = None) -> bool:
        """
        Decline a single request; siblings and the food item are untouched

        Returns:
            bool: False when the request was already declined (no-op)

        Raises:
            NotFoundError: request does not exist
            InvalidTransitionError: request is approved or picked up
        """
        with self.db.transaction() as txn:
            request = txn.get(REQUESTS_COLLECTION, request_id)
            if request is None:
                raise NotFoundError("Request not found", details={"request_id": request_id})

            current = request.get("status")
            if current == RequestStatus.DECLINED.value:
                return False
            if not can_transition(current, RequestStatus.DECLINED.value):
                logger.warning("Rejected decline of request %s in status %s", request_id, current)
                raise InvalidTransitionError(current, RequestStatus.DECLINED.value)

            now = self.clock()
            txn.update(REQUESTS_COLLECTION, request_id, {
                "status": RequestStatus.DECLINED.value,
                "reviewedAt": now.isoformat(),
            }, precondition={"status": RequestStatus.REQUESTED.value})

            write_log(txn, "request_decline", actor_id, {
                "request_id": request_id,
                "food_item_id": request.get("foodItemId"),
                "shelter_id": request.get("shelterId"),
            }, now=now)

        logger.info("Request %s declined", request_id)
        return True
