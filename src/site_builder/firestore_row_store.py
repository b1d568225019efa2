from __future__ import annotations

import logging
from typing import Sequence

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .row_store import PARENT_COLUMN, ReplaceChildren, RowWrite, UpsertRow

logger = logging.getLogger(__name__)


@firestore.transactional
def _commit_in_transaction(
    transaction: firestore.Transaction,
    db: firestore.Client,
    writes: Sequence[RowWrite],
) -> None:
    # Firestore requires every read of a transaction to happen before its writes.
    stale = []
    for write in writes:
        if isinstance(write, ReplaceChildren):
            query = db.collection(write.table).where(
                filter=FieldFilter(PARENT_COLUMN, "==", write.parent_id)
            )
            stale.extend(doc.reference for doc in transaction.get(query))

    for ref in stale:
        transaction.delete(ref)

    for write in writes:
        if isinstance(write, UpsertRow):
            doc_ref = db.collection(write.table).document(write.row_id)
            transaction.set(doc_ref, dict(write.values), merge=True)
            continue
        for row in write.rows:
            doc_ref = db.collection(write.table).document()
            transaction.set(
                doc_ref,
                {
                    **dict(row),
                    PARENT_COLUMN: write.parent_id,
                    "created_at": firestore.SERVER_TIMESTAMP,
                },
            )


class FirestoreRowStore:
    """Firestore-backed row store for production use.

    Each table maps to a collection; root rows use their id as the document
    id, child rows get auto-generated ids and carry ``entity_id``.
    """

    def __init__(self, project_id: str | None = None) -> None:
        self._db = firestore.Client(project=project_id)

    def get_row(self, table: str, row_id: str) -> dict | None:
        doc = self._db.collection(table).document(row_id).get()
        if not doc.exists:
            return None
        return {"id": doc.id, **doc.to_dict()}

    def select_children(self, table: str, parent_id: str) -> list[dict]:
        query = self._db.collection(table).where(filter=FieldFilter(PARENT_COLUMN, "==", parent_id))
        rows = [{"id": doc.id, **doc.to_dict()} for doc in query.stream()]
        # Sorted client-side to avoid requiring a composite index.
        return sorted(rows, key=lambda row: row.get("position", 0))

    def commit(self, writes: Sequence[RowWrite]) -> None:
        transaction = self._db.transaction()
        _commit_in_transaction(transaction, self._db, writes)
        logger.info(
            "Committed write set",
            extra={
                "tables": sorted({write.table for write in writes}),
                "writes": len(writes),
            },
        )


__all__ = ["FirestoreRowStore"]
