# Vault API - local REST endpoints over the vault session
#
# - Status / metadata / create / unlock / lock / save
# - Entry CRUD, search, tag filter, tag counts
# - Strength scoring and password generation
#
# The VaultManager is injected per request (see get_vault_manager); it is
# created by the app lifespan, never at import time.
#
# Routes are plain ``def`` on purpose: engine calls block, so FastAPI runs
# them in its threadpool and the event loop stays free.

from contextlib import contextmanager
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from ..vault import VaultManager
from ..vault.errors import (
    AlreadyExists,
    EngineInvocationFailed,
    HandoffCorrupt,
    HandoffUnavailable,
    InvalidInput,
    NotFound,
    NotUnlocked,
    PersistFailed,
    VaultError,
    VaultMissing,
    VaultUnreadable,
    WrongCredential,
)
from .security import verify_session_token

router = APIRouter(
    prefix="/api/vault",
    tags=["vault"],
    dependencies=[Depends(verify_session_token)],
)

ERROR_STATUS: Dict[type, int] = {
    VaultMissing: status.HTTP_404_NOT_FOUND,
    VaultUnreadable: status.HTTP_500_INTERNAL_SERVER_ERROR,
    AlreadyExists: status.HTTP_409_CONFLICT,
    WrongCredential: status.HTTP_401_UNAUTHORIZED,
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    NotUnlocked: status.HTTP_403_FORBIDDEN,
    NotFound: status.HTTP_404_NOT_FOUND,
    HandoffUnavailable: status.HTTP_500_INTERNAL_SERVER_ERROR,
    HandoffCorrupt: status.HTTP_500_INTERNAL_SERVER_ERROR,
    PersistFailed: status.HTTP_500_INTERNAL_SERVER_ERROR,
    EngineInvocationFailed: status.HTTP_502_BAD_GATEWAY,
}


def get_vault_manager(request: Request) -> VaultManager:
    """FastAPI dependency: the session owned by this app instance."""
    return request.app.state.vault_manager


@contextmanager
def vault_call():
    """Turn VaultError into a structured HTTP failure."""
    try:
        yield
    except VaultError as e:
        raise HTTPException(
            status_code=ERROR_STATUS.get(type(e), status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=e.to_dict()
        )


# Request Models
class CreateVaultRequest(BaseModel):
    password: str = ""
    confirmation: str = ""


class UnlockVaultRequest(BaseModel):
    master_password: str = ""


class AddEntryRequest(BaseModel):
    name: str = ""
    username: str = ""
    password: str = ""
    url: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = []


class UpdateEntryRequest(BaseModel):
    name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    url: Optional[str] = None
    notes: Optional[str] = None
    tags: Optional[List[str]] = None


class StrengthRequest(BaseModel):
    password: str = ""


# Endpoints

@router.get("/status")
def get_vault_status(manager: VaultManager = Depends(get_vault_manager)):
    """Whether a vault exists on disk and whether the session is unlocked."""
    return {
        "vault_exists": manager.check_exists(),
        "is_unlocked": manager.is_unlocked,
    }


@router.get("/info")
def get_vault_info(manager: VaultManager = Depends(get_vault_manager)):
    """Salt and ciphertext size of the on-disk vault (works while locked)."""
    with vault_call():
        return manager.vault_info()


@router.post("/create")
def create_vault(request: CreateVaultRequest, manager: VaultManager = Depends(get_vault_manager)):
    """Create a new vault through the engine (does not unlock it)."""
    with vault_call():
        manager.create_vault(request.password, request.confirmation)
    return {"success": True, "message": "Vault created"}


@router.post("/unlock")
def unlock_vault(request: UnlockVaultRequest, manager: VaultManager = Depends(get_vault_manager)):
    with vault_call():
        manager.unlock(request.master_password)
    return {"success": True, "message": "Vault unlocked"}


@router.post("/lock")
def lock_vault(manager: VaultManager = Depends(get_vault_manager)):
    """Log out: drop the in-memory vault (unsaved changes are lost)."""
    manager.logout()
    return {"success": True, "message": "Vault locked"}


@router.post("/save")
def save_vault(manager: VaultManager = Depends(get_vault_manager)):
    with vault_call():
        manager.save()
    return {"success": True, "message": "Vault saved"}


@router.get("/entries")
def list_entries(
    q: Optional[str] = None,
    tag: Optional[str] = None,
    manager: VaultManager = Depends(get_vault_manager),
):
    """
    List entries in stored order.

    ``q`` narrows by name/username/url substring, ``tag`` by tag; both may
    be combined.
    """
    with vault_call():
        entries = manager.query(q, tag)
    return {"entries": [entry.to_dict() for entry in entries]}


@router.post("/entries")
def add_entry(request: AddEntryRequest, manager: VaultManager = Depends(get_vault_manager)):
    with vault_call():
        entry = manager.add(
            name=request.name,
            username=request.username,
            password=request.password,
            url=request.url,
            notes=request.notes,
            tags=request.tags,
        )
    return {"success": True, "entry": entry.to_dict()}


@router.get("/entries/{entry_id}")
def get_entry(entry_id: str, manager: VaultManager = Depends(get_vault_manager)):
    with vault_call():
        return manager.get(entry_id).to_dict()


@router.put("/entries/{entry_id}")
def update_entry(
    entry_id: str,
    request: UpdateEntryRequest,
    manager: VaultManager = Depends(get_vault_manager),
):
    changes = {k: v for k, v in request.model_dump().items() if v is not None}
    with vault_call():
        entry = manager.update(entry_id, **changes)
    return {"success": True, "entry": entry.to_dict()}


@router.delete("/entries/{entry_id}")
def delete_entry(entry_id: str, manager: VaultManager = Depends(get_vault_manager)):
    with vault_call():
        manager.delete(entry_id)
    return {"success": True, "message": "Entry deleted"}


@router.get("/tags")
def list_tags(manager: VaultManager = Depends(get_vault_manager)):
    with vault_call():
        return {"tags": [{"tag": tag, "count": count} for tag, count in manager.tags()]}


@router.post("/strength")
def score_strength(request: StrengthRequest, manager: VaultManager = Depends(get_vault_manager)):
    return manager.score_strength(request.password).to_dict()


@router.get("/generate")
def generate(length: Optional[int] = None, manager: VaultManager = Depends(get_vault_manager)):
    return {"password": manager.generate_password(length)}
