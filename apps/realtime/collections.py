"""
Client-held collections (bids, vendors, bid_vendors, project_notes) and the
pure reducers realtime deltas are applied with. A reducer takes the previous
list and returns a new one; it never mutates its input.
"""

import logging
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

Item = Dict[str, Any]
Reducer = Callable[[List[Item]], List[Item]]
Setter = Callable[[Union[List[Item], Reducer]], None]

BIDS = "bids"
VENDORS = "vendors"
BID_VENDORS = "bid_vendors"
PROJECT_NOTES = "project_notes"

COLLECTIONS = (BIDS, VENDORS, BID_VENDORS, PROJECT_NOTES)


def insert_item(item: Item) -> Reducer:
    """
    Append ``item`` unless an item with the same id is already there.
    """
    def reduce(prev: List[Item]) -> List[Item]:
        if any(x.get("id") == item.get("id") for x in prev):
            return prev
        return [*prev, item]
    return reduce


def update_item(item: Item, merge: bool = True) -> Reducer:
    """
    Replace (or shallow-merge into) the item with the same id. Unknown ids
    leave the list unchanged.
    """
    def reduce(prev: List[Item]) -> List[Item]:
        return [
            ({**x, **item} if merge else item) if x.get("id") == item.get("id") else x
            for x in prev
        ]
    return reduce


def upsert_item(item: Item) -> Reducer:
    def reduce(prev: List[Item]) -> List[Item]:
        if any(x.get("id") == item.get("id") for x in prev):
            return update_item(item, merge=False)(prev)
        return [*prev, item]
    return reduce


def delete_item(item_id: Any) -> Reducer:
    def reduce(prev: List[Item]) -> List[Item]:
        return [x for x in prev if x.get("id") != item_id]
    return reduce


def delete_where(key: str, value: Any) -> Reducer:
    def reduce(prev: List[Item]) -> List[Item]:
        return [x for x in prev if x.get(key) != value]
    return reduce


def update_where(key: str, value: Any, changes: Item) -> Reducer:
    def reduce(prev: List[Item]) -> List[Item]:
        return [{**x, **changes} if x.get(key) == value else x for x in prev]
    return reduce


def replace_all(items: List[Item]) -> Reducer:
    def reduce(prev: List[Item]) -> List[Item]:
        return list(items)
    return reduce


@dataclass
class StateUpdaters:
    bids: Optional[Setter] = None
    vendors: Optional[Setter] = None
    bid_vendors: Optional[Setter] = None
    project_notes: Optional[Setter] = None

    def get(self, collection: str) -> Optional[Setter]:
        return getattr(self, collection, None)

    def as_dict(self) -> Dict[str, Optional[Setter]]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


class CollectionStore:
    """
    In-process holder of the four collections; hands out setters that accept
    either a full list or a reducer.
    """

    def __init__(self):
        self._data: Dict[str, List[Item]] = {name: [] for name in COLLECTIONS}

    def get(self, collection: str) -> List[Item]:
        return list(self._data[collection])

    def apply(self, collection: str, value: Union[List[Item], Reducer]) -> None:
        prev = self._data[collection]
        self._data[collection] = value(prev) if callable(value) else list(value)

    def setter(self, collection: str) -> Setter:
        if collection not in self._data:
            raise KeyError(collection)
        return lambda value: self.apply(collection, value)

    def updaters(self) -> StateUpdaters:
        return StateUpdaters(**{name: self.setter(name) for name in COLLECTIONS})

    def load(self, data: Dict[str, List[Item]]) -> None:
        for name, items in data.items():
            if name in self._data:
                self._data[name] = list(items)
        logger.info("Collections loaded: %s", {k: len(v) for k, v in self._data.items()})

    def snapshot(self) -> Dict[str, List[Item]]:
        return {name: list(items) for name, items in self._data.items()}
