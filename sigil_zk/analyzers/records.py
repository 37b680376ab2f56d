"""
Immutable records at the analyzer boundary.

RepositoryData / CommitData / CollaboratorData are supplied by an external
GitHub data collector (usually as JSON). Analyzers turn them into derived
records; nothing here is mutated after construction.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


def parse_timestamp(value: Any) -> datetime:
    """Accept ISO-8601 strings (with or without 'Z'), epoch seconds or datetimes."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid timestamp: {value!r}") from e
    else:
        raise TypeError(f"timestamp must be str, number or datetime, got {type(value)}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


# ============================================================================
# COLLECTOR INPUT
# ============================================================================


@dataclass(frozen=True)
class FileChange:
    filename: str
    additions: int = 0
    deletions: int = 0

    def __post_init__(self):
        if self.additions < 0 or self.deletions < 0:
            raise ValueError("additions and deletions must be non-negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileChange":
        return cls(
            filename=data["filename"],
            additions=int(data.get("additions", 0)),
            deletions=int(data.get("deletions", 0)),
        )


@dataclass(frozen=True)
class CommitData:
    """
    A single commit.

    Attributes:
        sha: Commit hash (hex)
        author: Author login
        message: Commit message
        timestamp: Commit time (timezone-aware)
        files: Per-file additions and deletions
    """

    sha: str
    author: str
    message: str
    timestamp: datetime
    files: Tuple[FileChange, ...] = ()

    @property
    def additions(self) -> int:
        return sum(f.additions for f in self.files)

    @property
    def deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    @property
    def lines_changed(self) -> int:
        return self.additions + self.deletions

    @property
    def filenames(self) -> Tuple[str, ...]:
        return tuple(f.filename for f in self.files)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CommitData":
        files = tuple(FileChange.from_dict(f) for f in data.get("files", []))
        if not files and ("additions" in data or "deletions" in data):
            # collectors without per-file stats report commit-level totals
            files = (
                FileChange(
                    filename="",
                    additions=int(data.get("additions", 0)),
                    deletions=int(data.get("deletions", 0)),
                ),
            )
        return cls(
            sha=data["sha"],
            author=data.get("author", ""),
            message=data.get("message", ""),
            timestamp=parse_timestamp(data["timestamp"]),
            files=files,
        )


def commits_by(commits: Tuple[CommitData, ...], author: str) -> Tuple[CommitData, ...]:
    """Commits whose author login matches, ignoring case."""
    wanted = author.lower()
    return tuple(c for c in commits if c.author.lower() == wanted)


@dataclass(frozen=True)
class CollaboratorData:
    login: str
    contributions: int = 0
    role: str = "contributor"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CollaboratorData":
        return cls(
            login=data["login"],
            contributions=int(data.get("contributions", 0)),
            role=data.get("role", "contributor"),
        )


@dataclass(frozen=True)
class RepositoryData:
    """
    A repository as seen by one user.

    Attributes:
        name: "owner/name" full name
        owner: Owner login
        user: Login of the user the credential is for
        commits: The user's commits
        collaborators: Everyone who contributed, including the user
        description: Free-text description
        topics: Repository topics
        languages: Repository-level language byte counts
        created_at: Repository creation time
    """

    name: str
    owner: str
    user: str
    commits: Tuple[CommitData, ...] = ()
    collaborators: Tuple[CollaboratorData, ...] = ()
    description: str = ""
    topics: Tuple[str, ...] = ()
    languages: Dict[str, int] = field(default_factory=dict)
    created_at: Optional[datetime] = None

    @property
    def is_owner(self) -> bool:
        return self.owner.lower() == self.user.lower()

    @property
    def user_commits(self) -> Tuple[CommitData, ...]:
        return commits_by(self.commits, self.user)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepositoryData":
        if "name" not in data or "owner" not in data or "user" not in data:
            raise ValueError("repository data requires name, owner and user")
        created = data.get("created_at")
        return cls(
            name=data["name"],
            owner=data["owner"],
            user=data["user"],
            commits=tuple(CommitData.from_dict(c) for c in data.get("commits", [])),
            collaborators=tuple(
                CollaboratorData.from_dict(c) for c in data.get("collaborators", [])
            ),
            description=data.get("description") or "",
            topics=tuple(data.get("topics", [])),
            languages=dict(data.get("languages", {})),
            created_at=parse_timestamp(created) if created is not None else None,
        )


# ============================================================================
# DERIVED RECORDS
# ============================================================================


@dataclass(frozen=True)
class LanguageUsage:
    """One circuit language slot. Fingerprint zero is the empty-slot sentinel."""

    name: str
    fingerprint: int
    lines: int
    proficiency: int
    active: bool = True


@dataclass(frozen=True)
class CollaboratorRecord:
    identity_hash: str
    contribution_percentage: float
    collaboration_score: int


@dataclass(frozen=True)
class RepositoryRecord:
    identity_hash: str
    commit_count: int
    total_lines_changed: int
    languages: Tuple[LanguageUsage, ...]
    collaborators: Tuple[CollaboratorRecord, ...]
    is_owner: bool
    first_activity: Optional[datetime]
    last_activity: Optional[datetime]


@dataclass(frozen=True)
class CredentialClaim:
    """
    Public range [lo, hi] over a private actual value.

    A circuit is only satisfiable when lo <= actual <= hi.
    """

    lo: int
    hi: int
    actual: int
    threshold: Optional[int] = None

    def __post_init__(self):
        if self.lo > self.hi:
            raise ValueError(f"claim range is empty: [{self.lo}, {self.hi}]")

    @property
    def holds(self) -> bool:
        if self.threshold is not None and self.actual < self.threshold:
            return False
        return self.lo <= self.actual <= self.hi
