from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from crud.filter_tables import FILTER_TABLES
from utils.auth_utils import get_current_user
from utils.exceptions import NotFound
from utils.saved_filters import SCHEMA_VERSION, upgrade_saved_filters

router = APIRouter(prefix="/filters", tags=["Filters"])

class SavedFilter(BaseModel):
    name: Optional[str] = None
    version: Optional[int] = None
    filters: Dict[str, Any] = {}

class SavedFilterUpgrade(BaseModel):
    entries: List[SavedFilter]

@router.get("/vocabulary")
def read_filter_vocabulary(user: dict = Depends(get_current_user)):
    """Filter keys each list endpoint understands, for building and saving filters."""
    return {
        "schema_version": SCHEMA_VERSION,
        "collections": {name: table.vocabulary() for name, table in FILTER_TABLES.items()},
    }

@router.post("/{collection}/upgrade")
def upgrade_filters(collection: str, payload: SavedFilterUpgrade, user: dict = Depends(get_current_user)):
    """Bring saved filters up to the current schema, reporting keys that were dropped."""
    translator = FILTER_TABLES.get(collection)
    if translator is None:
        raise NotFound("Filter collection")
    entries = [entry.model_dump() for entry in payload.entries]
    return {"schema_version": SCHEMA_VERSION, "entries": upgrade_saved_filters(translator, entries)}
