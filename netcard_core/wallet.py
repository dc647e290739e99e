from __future__ import annotations
from typing import Any, Awaitable, Callable, Dict, List

Mutator = Callable[[Dict[str, Any]], None]
DataWriter = Callable[[Mutator], Awaitable[Dict[str, Any]]]


class Wallet:
    """
    Auxiliary key/value namespace stored next to one card.

    Reads come from the snapshot taken when the wallet was opened.
    Writes go back through the owning CardStore as a compare-and-swap
    update, after which the snapshot is replaced with what was stored.
    """

    def __init__(self, card_name: str, data: Dict[str, Any], writer: DataWriter):
        self.card_name = card_name
        self._data = dict(data)
        self._writer = writer

    async def list_names(self) -> List[str]:
        return list(self._data)

    async def contains(self, name: str) -> bool:
        return name in self._data

    async def get(self, name: str) -> Any:
        if name not in self._data:
            raise KeyError(f"wallet for {self.card_name} has no entry {name}")
        return self._data[name]

    async def put(self, name: str, value: Any) -> None:
        def _set(data):
            data[name] = value
        self._data = await self._writer(_set)

    async def remove(self, name: str) -> None:
        def _pop(data):
            if name not in data:
                raise KeyError(f"wallet for {self.card_name} has no entry {name}")
            del data[name]
        self._data = await self._writer(_pop)

    def __repr__(self):
        return f"Wallet({self.card_name!r}, names={list(self._data)!r})"
