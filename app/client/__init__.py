# Client half of the list-query pipeline.
#
#   edits      — user edits + the pure (spec, edit) -> spec reducer
#   state      — ClientQueryState: debounced search, stale-response guard
#   transport  — GamesClient: httpx fetch of one list page
from app.client.edits import apply_edit
from app.client.state import ClientQueryState, QueryStatus
from app.client.transport import GamesClient

__all__ = ["ClientQueryState", "GamesClient", "QueryStatus", "apply_edit"]
