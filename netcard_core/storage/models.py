# netcard_core/storage/models.py
from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional
import json

from netcard_core.errors import StorageError


@dataclass
class CardRecord:
    """
    Storage-level representation of a stored business network card.

    Provider-agnostic: the memory and SQLite providers both hand these out.
    ``data`` is the auxiliary map the wallet view reads; ``version`` is bumped
    on every write and guards compare-and-swap data updates.
    """
    name: str
    archive_b64: str
    owner_ref: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    version: int = 1

    def copy(self) -> "CardRecord":
        return replace(self, data=deepcopy(self.data))


def encode_data(data: Dict[str, Any]) -> str:
    """JSON text for a data map; every provider stores what this accepts."""
    try:
        return json.dumps(data)
    except (TypeError, ValueError) as e:
        raise StorageError(f"card data is not JSON serializable: {e}") from e
