"""
Merges table change notifications into the client collections.

Two strategies:

* ``direct``: each change is applied to the affected collection at once as
  a small delta (insert / update / delete of one item). Rows that need data
  from other tables are re-read individually: a bid vendor when one of its
  phases, financials or responses changes, a vendor when its primary contact
  changes. A per-table "settled" event is debounced after the burst.
* ``refresh``: changes only (re)start a per-table debounce timer; when it
  fires, every collection is re-read once.

Malformed notifications and failed re-reads are logged and dropped; they
never reach the caller.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from apps.realtime.collections import (
    BID_VENDORS,
    BIDS,
    COLLECTIONS,
    PROJECT_NOTES,
    VENDORS,
    Reducer,
    StateUpdaters,
    delete_item,
    delete_where,
    insert_item,
    replace_all,
    update_item,
    update_where,
    upsert_item,
)
from apps.realtime.debounce import Debouncer
from apps.realtime.events import DELETE, INSERT, ChangePayload, DeltaEvent, parse_change
from apps.reconciliation.fields import RELATIONSHIP_FIELDS
from apps.reconciliation.records import LegacyBidVendor
from apps.reconciliation.transformer import legacy_dict, project_to_legacy_bid, to_legacy

logger = logging.getLogger(__name__)

DIRECT = "direct"
REFRESH = "refresh"

# Tables whose rows live on a bid vendor; a change re-reads that bid vendor
RELATIONSHIP_CHILD_TABLES = ("apm_phases", "project_financials", "est_responses")

Listener = Callable[[DeltaEvent], Any]


class RealtimeReconciler:
    def __init__(
        self,
        strategy: str = DIRECT,
        debounce_seconds: float = 1.0,
        fetcher: Optional[Any] = None,
    ):
        if strategy not in (DIRECT, REFRESH):
            raise ValueError(f"unknown realtime strategy {strategy!r}")
        self.strategy = strategy
        self.fetcher = fetcher
        self.debouncer = Debouncer(debounce_seconds)
        self._updaters = StateUpdaters()
        self._listeners: List[Listener] = []

    # ---------- wiring ----------

    def set_state_updaters(self, bids=None, vendors=None, bid_vendors=None, project_notes=None) -> None:
        """
        Register the setters changes are written through. A collection with no
        setter is skipped.
        """
        self._updaters = StateUpdaters(
            bids=bids,
            vendors=vendors,
            bid_vendors=bid_vendors,
            project_notes=project_notes,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe

    def close(self) -> None:
        self.debouncer.cancel_all()
        self._listeners.clear()

    # ---------- entry point ----------

    async def handle_payload(self, raw: Union[str, bytes, Dict[str, Any]]) -> None:
        try:
            change = parse_change(raw)
        except (ValueError, ValidationError) as exc:
            logger.warning("Dropping malformed change notification: %s", exc)
            return

        logger.debug("%s on %s id=%s", change.type, change.table, change.row_id)
        if self.strategy == REFRESH:
            self.debouncer.call(change.table, self.refresh_all, change.table)
            return

        handler = self._handlers().get(change.table)
        if handler is None:
            logger.debug("No handler for table %s", change.table)
            return
        try:
            await handler(change)
        except Exception:
            logger.exception("Applying %s on %s id=%s failed", change.type, change.table, change.row_id)
            return
        self.debouncer.call(change.table, self._settled, change.table)

    def _handlers(self) -> Dict[str, Callable[[ChangePayload], Awaitable[None]]]:
        handlers = {table: self._on_relationship_child for table in RELATIONSHIP_CHILD_TABLES}
        handlers.update({
            "projects": self._on_project,
            "project_vendors": self._on_relationship,
            "bid_vendors": self._on_legacy_bid_vendor,
            "vendors": self._on_vendor,
            "vendor_contacts": self._on_vendor_contact,
            "project_notes": self._on_note,
        })
        return handlers

    # ---------- per-table handlers ----------

    async def _on_project(self, change: ChangePayload) -> None:
        if change.type == DELETE:
            project_id = change.row_id
            self._apply(BIDS, delete_item(project_id), DeltaEvent(BIDS, "delete", project_id, source_table=change.table))
            # children go in the same pass so nothing is left pointing at a missing bid
            self._apply(BID_VENDORS, delete_where("bid_id", project_id), DeltaEvent(BID_VENDORS, "delete", meta={"bid_id": project_id}, source_table=change.table))
            self._apply(PROJECT_NOTES, delete_where("bid_id", project_id), DeltaEvent(PROJECT_NOTES, "delete", meta={"bid_id": project_id}, source_table=change.table))
            return

        if change.truncated:
            bid = await self._fetch("fetch_bid", change.row_id)
            if bid is None:
                return
        else:
            bid = project_to_legacy_bid(change.record)
        if change.type == INSERT:
            self._apply(BIDS, insert_item(bid), DeltaEvent(BIDS, "insert", bid["id"], bid, source_table=change.table))
        else:
            self._apply(BIDS, update_item(bid), DeltaEvent(BIDS, "update", bid["id"], bid, source_table=change.table))

    async def _on_relationship(self, change: ChangePayload) -> None:
        rel_id = change.row_id
        if change.type == DELETE:
            self._apply(BID_VENDORS, delete_item(rel_id), DeltaEvent(BID_VENDORS, "delete", rel_id, source_table=change.table))
            return

        item = await self._fetch("fetch_bid_vendor", rel_id)
        if item is None:
            # no reader, or the read failed: work from the bare relationship row
            row = change.record
            if change.type == INSERT:
                item = legacy_dict(to_legacy(row))
            else:
                item = {legacy: row.get(attr) for attr, legacy in RELATIONSHIP_FIELDS.items() if attr in row}
        kind = "insert" if change.type == INSERT else "update"
        reducer = insert_item(item) if change.type == INSERT else update_item(item)
        self._apply(BID_VENDORS, reducer, DeltaEvent(BID_VENDORS, kind, rel_id, item, source_table=change.table))

    async def _on_legacy_bid_vendor(self, change: ChangePayload) -> None:
        row_id = change.row_id
        if change.type == DELETE:
            self._apply(BID_VENDORS, delete_item(row_id), DeltaEvent(BID_VENDORS, "delete", row_id, source_table=change.table))
            return
        if change.truncated:
            item = await self._fetch("fetch_bid_vendor", row_id)
            if item is None:
                return
        else:
            item = legacy_dict(LegacyBidVendor.model_validate(change.record))
        if change.type == INSERT:
            self._apply(BID_VENDORS, insert_item(item), DeltaEvent(BID_VENDORS, "insert", row_id, item, source_table=change.table))
        else:
            self._apply(BID_VENDORS, update_item(item), DeltaEvent(BID_VENDORS, "update", row_id, item, source_table=change.table))

    async def _on_relationship_child(self, change: ChangePayload) -> None:
        rel_id = change.row.get("project_vendor_id")
        if rel_id is None:
            logger.warning("%s row %s has no project_vendor_id", change.table, change.row_id)
            return
        if self.fetcher is None:
            logger.debug("No fetcher; %s change on bid vendor %s not reflected", change.table, rel_id)
            return
        item = await self._fetch("fetch_bid_vendor", rel_id)
        if item is None:
            return
        self._apply(BID_VENDORS, upsert_item(item), DeltaEvent(BID_VENDORS, "update", rel_id, item, source_table=change.table))

    async def _on_vendor(self, change: ChangePayload) -> None:
        vendor_id = change.row_id
        if change.type == DELETE:
            self._apply(VENDORS, delete_item(vendor_id), DeltaEvent(VENDORS, "delete", vendor_id, source_table=change.table))
            return

        if change.truncated:
            await self._refetch_vendor(vendor_id, change.table, insert=change.type == INSERT)
            return

        record = dict(change.record)
        if change.type == INSERT:
            record.setdefault("primary_contact", None)
            self._apply(VENDORS, insert_item(record), DeltaEvent(VENDORS, "insert", vendor_id, record, source_table=change.table))
            return

        # unknown old row counts as changed
        if change.changed("primary_contact_id") is not False:
            await self._refetch_vendor(vendor_id, change.table)
        else:
            self._apply(VENDORS, update_item(record), DeltaEvent(VENDORS, "update", vendor_id, record, source_table=change.table))

        if change.changed("company_name"):
            self._apply(
                BID_VENDORS,
                update_where("vendor_id", vendor_id, {"vendor_name": record.get("company_name")}),
                DeltaEvent(BID_VENDORS, "update", meta={"vendor_id": vendor_id}, source_table=change.table),
            )

    async def _on_vendor_contact(self, change: ChangePayload) -> None:
        rows = [r for r in (change.record, change.old_record) if r]
        if not any(r.get("is_primary") for r in rows):
            return
        vendor_id = change.row.get("vendor_id")
        if vendor_id is not None:
            await self._refetch_vendor(vendor_id, change.table)

    async def _on_note(self, change: ChangePayload) -> None:
        note_id = change.row_id
        if change.type == DELETE:
            self._apply(PROJECT_NOTES, delete_item(note_id), DeltaEvent(PROJECT_NOTES, "delete", note_id, source_table=change.table))
            return
        note = await self._fetch("fetch_note", note_id)
        if note is None:
            note = {**change.record, "bid_id": change.record.get("project_id")}
        if change.type == INSERT:
            self._apply(PROJECT_NOTES, insert_item(note), DeltaEvent(PROJECT_NOTES, "insert", note_id, note, source_table=change.table))
        else:
            self._apply(PROJECT_NOTES, update_item(note), DeltaEvent(PROJECT_NOTES, "update", note_id, note, source_table=change.table))

    # ---------- re-reads ----------

    async def _refetch_vendor(self, vendor_id: Any, table: str, insert: bool = False) -> None:
        vendor = await self._fetch("fetch_vendor", vendor_id)
        if vendor is None:
            return
        if insert:
            self._apply(VENDORS, insert_item(vendor), DeltaEvent(VENDORS, "insert", vendor_id, vendor, source_table=table))
        else:
            self._apply(VENDORS, update_item(vendor, merge=False), DeltaEvent(VENDORS, "update", vendor_id, vendor, source_table=table))

    async def _fetch(self, method: str, item_id: Any) -> Optional[Dict[str, Any]]:
        if self.fetcher is None:
            return None
        try:
            return await getattr(self.fetcher, method)(item_id)
        except Exception:
            logger.exception("Realtime re-read %s(%s) failed", method, item_id)
            return None

    async def refresh_all(self, table: Optional[str] = None) -> None:
        if self.fetcher is None:
            logger.warning("Refresh requested but no fetcher is configured")
            return
        try:
            data = await self.fetcher.fetch_all()
        except Exception:
            logger.exception("Realtime refresh after %s change failed", table)
            return
        for collection in COLLECTIONS:
            if collection in data:
                items = data[collection]
                self._apply(collection, replace_all(items), DeltaEvent(collection, "replace", items=items, source_table=table))

    # ---------- plumbing ----------

    def _apply(self, collection: str, reducer: Reducer, event: DeltaEvent) -> None:
        setter = self._updaters.get(collection)
        if setter is not None:
            setter(reducer)
        self._emit(event)

    def _settled(self, table: str) -> None:
        self._emit(DeltaEvent(table, "settled", source_table=table))

    def _emit(self, event: DeltaEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Realtime listener %r failed", listener)
