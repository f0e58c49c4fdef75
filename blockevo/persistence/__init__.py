from __future__ import annotations

from blockevo.persistence.document import STATE_VERSION, CreatureRecord, StateDocument
from blockevo.persistence.serializer import (
    export_state,
    import_state,
    load_state,
    parse_state,
    save_state,
    state_summary,
)

__all__ = [
    "STATE_VERSION",
    "CreatureRecord",
    "StateDocument",
    "export_state",
    "import_state",
    "load_state",
    "parse_state",
    "save_state",
    "state_summary",
]
