"""
------------------------------------------------------------------------------
Project:        ParaFlux
File:           paraflux/frontmatter.py
Version:        1.0.0
Producer:       thorsten.schnebeck@gmx.net
Generator:      Antigravity
Description:    Frontmatter codec. Parses, merges and serializes the small
                metadata block at the top of every note. Hand-written scanner
                for the subset the vault uses: scalars, inline and block
                lists, one nested 'file' object and quoted strings.
                Pure transforms only; persistence happens in callers.
------------------------------------------------------------------------------
"""

import re
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

from paraflux.logger import get_logger
from paraflux.models.types import NoteSource, NoteStatus, ParaCategory

logger = get_logger("frontmatter")

_BLOCK_RE = re.compile(r"^---[ \t]*\r?\n(?:([\s\S]*?)\r?\n)?---[ \t]*(?:\r?\n|$)")
_KEY_RE = re.compile(r"^[A-Za-z_][\w\-]*$")
_NUMBER_RE = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")
_RESERVED_WORDS = {"true", "false", "yes", "no", "on", "off", "null", "none", "~"}
_STRUCTURAL_CHARS = set(':#[]{},"\'\n\r\t')
_LEADING_INDICATORS = set("-?&*!|>%@`")

KNOWN_KEYS = ("category", "tags", "created", "status", "summary", "source", "project", "file")


@dataclass
class FileMetadata:
    """Descriptor of the binary a companion note points to."""
    name: str
    format: str
    size_kb: float = 0.0


@dataclass
class Frontmatter:
    category: Optional[ParaCategory] = None
    tags: List[str] = field(default_factory=list)
    created: Optional[str] = None
    status: Optional[NoteStatus] = None
    summary: Optional[str] = None
    source: Optional[NoteSource] = None
    project: Optional[str] = None
    file: Optional[FileMetadata] = None
    # Raw lines of keys this codec does not manage, re-emitted untouched
    extra_lines: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.tags = dedup_tags(self.tags)

    @property
    def is_empty(self) -> bool:
        return self == Frontmatter()

    @classmethod
    def create_default(
        cls,
        category: ParaCategory = ParaCategory.RESOURCE,
        tags: Iterable[str] = (),
        summary: str = "",
        source: NoteSource = NoteSource.IMPORT,
        project: Optional[str] = None,
        file: Optional[FileMetadata] = None,
    ) -> "Frontmatter":
        return cls(
            category=category,
            tags=list(tags),
            created=today(),
            status=NoteStatus.ACTIVE,
            summary=summary,
            source=source,
            project=project,
            file=file,
        )

    def stringify(self) -> str:
        """Serializes to a `---` delimited block in fixed key order."""
        lines = ["---"]
        if self.category is not None:
            lines.append(f"category: {self.category.value}")
        if self.tags:
            lines.append("tags: [" + ", ".join(quote_value(t) for t in self.tags) + "]")
        if self.created:
            lines.append(f"created: {quote_value(self.created)}")
        if self.status is not None:
            lines.append(f"status: {self.status.value}")
        if self.summary:
            lines.append(f"summary: {quote_value(self.summary)}")
        if self.source is not None:
            lines.append(f"source: {self.source.value}")
        if self.project:
            lines.append(f"project: {quote_value(self.project)}")
        if self.file is not None:
            lines.append("file:")
            lines.append(f"  name: {quote_value(self.file.name)}")
            lines.append(f"  format: {quote_value(self.file.format)}")
            lines.append(f"  size_kb: {_format_size(self.file.size_kb)}")
        lines.extend(self.extra_lines)
        lines.append("---")
        return "\n".join(lines)

    def merged_over(self, existing: "Frontmatter") -> "Frontmatter":
        """
        Returns self with every non-empty field of `existing` taking priority.
        """
        return Frontmatter(
            category=existing.category or self.category,
            tags=existing.tags or self.tags,
            created=existing.created or self.created,
            status=existing.status or self.status,
            summary=existing.summary or self.summary,
            source=existing.source or self.source,
            project=existing.project or self.project,
            file=existing.file or self.file,
            extra_lines=existing.extra_lines or self.extra_lines,
        )

    def inject(self, into: str) -> str:
        """
        Merges this frontmatter into a note. Values already present in the
        note win over the ones carried by self.
        """
        existing, body = parse(into)
        return compose(self.merged_over(existing), body)


def today() -> str:
    return date.today().isoformat()


def dedup_tags(tags: Iterable[str]) -> List[str]:
    """Case-insensitive dedup, first spelling wins, blanks dropped."""
    result: List[str] = []
    seen = set()
    for tag in tags:
        clean = str(tag).strip()
        if clean and clean.lower() not in seen:
            seen.add(clean.lower())
            result.append(clean)
    return result


def compose(fm: Frontmatter, body: str) -> str:
    if fm.is_empty:
        return body
    return fm.stringify() + "\n" + body


def parse(text: str) -> Tuple[Frontmatter, str]:
    """
    Splits a note into its frontmatter and body.

    A missing, unterminated or malformed block yields an empty Frontmatter
    and the untouched text as body.
    """
    match = _BLOCK_RE.match(text)
    if not match:
        return Frontmatter(), text

    block = match.group(1) or ""
    try:
        fm = _parse_block(block)
    except ValueError as e:
        logger.debug(f"Ignoring malformed frontmatter: {e}")
        return Frontmatter(), text
    return fm, text[match.end():]


def strip(text: str) -> str:
    """Returns the body of a note without its frontmatter."""
    return parse(text)[1]


def merge_tags(text: str, tags: Iterable[str]) -> Tuple[str, bool]:
    """
    Adds tags to a note's frontmatter. Returns the new text and whether
    anything changed; merging the same tags twice is a no-op.
    """
    fm, body = parse(text)
    merged = dedup_tags(list(fm.tags) + list(tags))
    if len(merged) == len(fm.tags):
        return text, False
    return compose(replace(fm, tags=merged), body), True


def quote_value(value: str) -> str:
    """Quotes a scalar when a reader could misinterpret it."""
    value = str(value)
    if _needs_quotes(value):
        escaped = (value.replace("\\", "\\\\").replace('"', '\\"')
                   .replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t"))
        return f'"{escaped}"'
    return value


def _needs_quotes(value: str) -> bool:
    if value == "" or value != value.strip():
        return True
    if value.lower() in _RESERVED_WORDS or _NUMBER_RE.match(value):
        return True
    if value[0] in _LEADING_INDICATORS:
        return True
    return any(ch in _STRUCTURAL_CHARS for ch in value)


def _format_size(size_kb: float) -> str:
    rounded = round(float(size_kb), 1)
    return str(int(rounded)) if rounded.is_integer() else str(rounded)


# --- Scanner ---

def _find_unquoted(text: str, target: str) -> int:
    """Index of the first `target` char outside quotes, -1 if absent."""
    quote: Optional[str] = None
    escaped = False
    for idx, ch in enumerate(text):
        if escaped:
            escaped = False
            continue
        if quote == '"' and ch == "\\":
            escaped = True
            continue
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in ('"', "'"):
            quote = ch
        elif ch == target:
            return idx
    return -1


def _split_unquoted(text: str, sep: str) -> List[str]:
    parts: List[str] = []
    rest = text
    while True:
        idx = _find_unquoted(rest, sep)
        if idx == -1:
            parts.append(rest)
            return parts
        parts.append(rest[:idx])
        rest = rest[idx + 1:]


def _unquote(raw: str) -> str:
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        inner = value[1:-1]
        out = []
        i = 0
        while i < len(inner):
            ch = inner[i]
            if ch == "\\" and i + 1 < len(inner):
                nxt = inner[i + 1]
                out.append({"n": "\n", "r": "\r", "t": "\t", '"': '"', "\\": "\\"}.get(nxt, nxt))
                i += 2
                continue
            out.append(ch)
            i += 1
        return "".join(out)
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1].replace("''", "'")
    return value


def _split_key(line: str) -> Tuple[str, str]:
    idx = _find_unquoted(line, ":")
    if idx == -1:
        raise ValueError(f"line without key: {line!r}")
    key = line[:idx].strip()
    if not _KEY_RE.match(key):
        raise ValueError(f"invalid key: {key!r}")
    return key, line[idx + 1:].strip()


def _parse_inline_list(raw: str) -> List[str]:
    inner = raw.strip()[1:-1]
    if not inner.strip():
        return []
    return [_unquote(item) for item in _split_unquoted(inner, ",")]


def _parse_block(block: str) -> Frontmatter:
    scalars: Dict[str, str] = {}
    lists: Dict[str, List[str]] = {}
    objects: Dict[str, Dict[str, str]] = {}
    extra_lines: List[str] = []

    current_key: Optional[str] = None
    current_is_extra = False

    for raw_line in block.split("\n"):
        line = raw_line.rstrip("\r")
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        if line[0] in (" ", "\t") or stripped.startswith("- "):
            if current_key is None:
                raise ValueError(f"indented line without parent key: {line!r}")
            if current_is_extra:
                extra_lines.append(line)
                continue
            if stripped == "-" or stripped.startswith("- "):
                lists.setdefault(current_key, []).append(_unquote(stripped[1:]))
            else:
                sub_key, sub_val = _split_key(stripped)
                objects.setdefault(current_key, {})[sub_key] = _unquote(sub_val)
            continue

        key, raw_value = _split_key(line)
        current_key = key
        current_is_extra = key not in KNOWN_KEYS and key != "para"
        if current_is_extra:
            extra_lines.append(line)
            continue

        if raw_value == "":
            continue
        if raw_value.startswith("[") and raw_value.endswith("]"):
            lists[key] = _parse_inline_list(raw_value)
        else:
            scalars[key] = _unquote(raw_value)

    return _build(scalars, lists, objects, extra_lines)


def _enum_or_none(enum_cls, value: Optional[str]):
    if not value:
        return None
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        return None


def _build(
    scalars: Dict[str, str],
    lists: Dict[str, List[str]],
    objects: Dict[str, Dict[str, str]],
    extra_lines: List[str],
) -> Frontmatter:
    category = ParaCategory.from_token(scalars.get("category") or scalars.get("para"))

    tags = lists.get("tags")
    if tags is None and scalars.get("tags"):
        tags = [t for t in (_unquote(p) for p in _split_unquoted(scalars["tags"], ",")) if t]

    file_meta = None
    file_obj = objects.get("file")
    if file_obj and file_obj.get("name"):
        try:
            size_kb = float(file_obj.get("size_kb") or 0)
        except ValueError:
            size_kb = 0.0
        file_meta = FileMetadata(name=file_obj["name"], format=file_obj.get("format", ""), size_kb=size_kb)

    return Frontmatter(
        category=category,
        tags=tags or [],
        created=scalars.get("created") or None,
        status=_enum_or_none(NoteStatus, scalars.get("status")),
        summary=scalars.get("summary") or None,
        source=_enum_or_none(NoteSource, scalars.get("source")),
        project=scalars.get("project") or None,
        file=file_meta,
        extra_lines=extra_lines,
    )
