# Vault Models - Entry / Vault records and their handoff serialization
#
# Handoff JSON shape:
#   {"entries": [{id, name, username, password, url, notes, tags,
#                 created_at, updated_at, history}], "salt": "..."}

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List

MAX_PASSWORD_HISTORY = 5


def utc_now() -> str:
    """Current time as ISO 8601 UTC."""
    return datetime.now(timezone.utc).isoformat()


def normalize_tag(tag: str) -> str:
    return str(tag).strip().lower()


def normalize_tags(tags) -> List[str]:
    """Strip, lowercase and de-duplicate tags, keeping first-seen order.

    A bare string is one tag, not a sequence of characters.
    """
    if isinstance(tags, str):
        tags = [tags]
    result: List[str] = []
    for tag in tags or ():
        cleaned = normalize_tag(tag)
        if cleaned and cleaned not in result:
            result.append(cleaned)
    return result


@dataclass(frozen=True)
class PasswordHistory:
    """A password that was replaced by an edit."""
    password: str
    changed_at: str           # ISO 8601 UTC

    def to_dict(self) -> Dict[str, Any]:
        return {"password": self.password, "changed_at": self.changed_at}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PasswordHistory":
        return cls(password=str(data["password"]), changed_at=str(data["changed_at"]))


@dataclass
class Entry:
    """One stored credential record."""
    id: str                   # Opaque, never reused
    name: str
    username: str
    password: str
    url: str = ""
    notes: str = ""
    tags: List[str] = field(default_factory=list)
    created_at: str = field(default_factory=utc_now)
    updated_at: str = ""      # Empty until first edit is recorded
    history: List[PasswordHistory] = field(default_factory=list)

    def __post_init__(self):
        if not self.updated_at:
            self.updated_at = self.created_at

    def has_tag(self, tag: str) -> bool:
        return normalize_tag(tag) in self.tags

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on name, username or url."""
        needle = query.lower()
        return (
            needle in self.name.lower()
            or needle in self.username.lower()
            or needle in self.url.lower()
        )

    def copy(self) -> "Entry":
        return replace(self, tags=list(self.tags), history=list(self.history))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "password": self.password,
            "url": self.url,
            "notes": self.notes,
            "tags": list(self.tags),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "history": [h.to_dict() for h in self.history],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entry":
        """
        Rebuild an entry from its handoff form.

        Raises:
            KeyError, TypeError, ValueError: On a malformed record
        """
        if not isinstance(data, dict):
            raise TypeError(f"entry must be an object, got {type(data).__name__}")

        entry_id = str(data["id"])
        if not entry_id:
            raise ValueError("entry id is empty")

        tags = data.get("tags") or []
        if not isinstance(tags, list):
            raise TypeError("entry tags must be a list")

        history = data.get("history") or []
        if not isinstance(history, list):
            raise TypeError("entry history must be a list")

        return cls(
            id=entry_id,
            name=str(data["name"]),
            username=str(data["username"]),
            password=str(data["password"]),
            url=str(data.get("url") or ""),
            notes=str(data.get("notes") or ""),
            tags=normalize_tags(tags),
            created_at=str(data.get("created_at") or ""),
            updated_at=str(data.get("updated_at") or ""),
            history=[PasswordHistory.from_dict(h) for h in history],
        )


@dataclass
class Vault:
    """The session's working set: ordered entries plus the engine's salt."""
    salt: str
    entries: List[Entry] = field(default_factory=list)

    def find(self, entry_id: str):
        """Return (index, entry) for ``entry_id`` or (None, None)."""
        for index, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return index, entry
        return None, None

    def ids(self) -> set:
        return {entry.id for entry in self.entries}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "salt": self.salt,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Vault":
        """
        Rebuild a vault from its handoff form.

        Raises:
            KeyError, TypeError, ValueError: On a malformed document
        """
        if not isinstance(data, dict):
            raise TypeError(f"vault must be an object, got {type(data).__name__}")

        salt = data["salt"]
        if not isinstance(salt, str):
            raise TypeError("vault salt must be a string")

        raw_entries = data.get("entries")
        if raw_entries is None:
            raw_entries = []
        if not isinstance(raw_entries, list):
            raise TypeError("vault entries must be a list")

        entries = [Entry.from_dict(item) for item in raw_entries]

        seen = set()
        for entry in entries:
            if entry.id in seen:
                raise ValueError(f"duplicate entry id {entry.id!r}")
            seen.add(entry.id)

        return cls(salt=salt, entries=entries)
