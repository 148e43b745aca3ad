from __future__ import annotations
import ast
import html
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .errors import MalformedShard
from .models import Anchor, Diagnostic, Entry, Shard
from .partition import Partition

log = logging.getLogger(__name__)

FORMAT_JS = "js"
FORMAT_JSON = "json"

# "var searchData=" ... "];"
_JS_ASSIGN = re.compile(r"^\s*var\s+\w+\s*=\s*", re.S)
# var indexSectionsWithContent = { 0: "...", 1: "..." };
_JS_OBJECT = re.compile(r"var\s+(?P<name>\w+)\s*=\s*\{(?P<body>.*?)\}\s*;", re.S)
_JS_PAIR = re.compile(r"(?P<key>\d+)\s*:\s*\"(?P<value>(?:[^\"\\]|\\.)*)\"", re.S)


def detect_format(text: str) -> str:
    return FORMAT_JS if _JS_ASSIGN.match(text or "") else FORMAT_JSON


def _text(value: Any) -> str:
    # doxygen writes names and labels as HTML fragments (&amp;, &lt; ...)
    return html.unescape(value)


# ---------- record shapes ----------

def _doxygen_occurrences(record: Any) -> Tuple[str, List[Tuple[str, str, bool]]]:
    """[searchId, [displayName, [url, inFrame, label], ...]]"""
    if not isinstance(record, (list, tuple)) or len(record) != 2:
        raise ValueError("expected [searchId, [name, occurrences...]]")
    body = record[1]
    if not isinstance(body, (list, tuple)) or len(body) < 2 or not isinstance(body[0], str):
        raise ValueError("expected [name, occurrence, ...]")
    occs: List[Tuple[str, str, bool]] = []
    for occ in body[1:]:
        if (not isinstance(occ, (list, tuple)) or len(occ) != 3
                or not isinstance(occ[0], str) or not isinstance(occ[2], str)):
            raise ValueError("expected occurrence [url, flag, label]")
        occs.append((occ[2], occ[0], bool(occ[1])))
    return body[0], occs


def _json_occurrences(record: Any) -> Tuple[str, List[Tuple[str, str, bool]]]:
    """[displayName, [label, anchor]] or [displayName, [[label, anchor], ...]]"""
    if not isinstance(record, (list, tuple)) or len(record) != 2 or not isinstance(record[0], str):
        raise ValueError("expected [name, occurrences]")
    body = record[1]
    if not isinstance(body, (list, tuple)) or not body:
        raise ValueError("expected a non-empty occurrence list")
    pairs = [body] if all(isinstance(x, str) for x in body) else list(body)
    occs: List[Tuple[str, str, bool]] = []
    for pair in pairs:
        if (not isinstance(pair, (list, tuple)) or len(pair) != 2
                or not all(isinstance(x, str) for x in pair)):
            raise ValueError("expected occurrence [label, anchor]")
        occs.append((pair[0], pair[1], True))
    return record[0], occs


def _decode_document(bucket_id: str, text: str, fmt: str) -> List[Any]:
    try:
        if fmt == FORMAT_JS:
            payload = _JS_ASSIGN.sub("", text, count=1).strip().rstrip(";").strip()
            data = ast.literal_eval(payload)
        else:
            data = json.loads(text)
    except (ValueError, SyntaxError, MemoryError, RecursionError) as e:
        raise MalformedShard(bucket_id, f"cannot decode {fmt} document: {e}") from e
    if not isinstance(data, (list, tuple)):
        raise MalformedShard(bucket_id, f"top level is {type(data).__name__}, expected a list")
    return list(data)


def parse_shard(bucket_id: str, text: str, fmt: Optional[str] = None) -> Shard:
    """
    Build an immutable Shard from a wire document.
    Records with the wrong shape are skipped and reported in Shard.diagnostics.
    Raises MalformedShard only when the document as a whole is unreadable.
    """
    fmt = fmt or detect_format(text)
    records = _decode_document(bucket_id, text, fmt)
    shape = _doxygen_occurrences if fmt == FORMAT_JS else _json_occurrences

    entries: List[Entry] = []
    problems: List[Diagnostic] = []
    for i, record in enumerate(records):
        try:
            name, occs = shape(record)
        except ValueError as e:
            problems.append(Diagnostic(bucket_id, str(e), i))
            continue
        name = _text(name)
        for label, anchor, in_frame in occs:
            entries.append(Entry(
                display_name=name,
                qualified_label=_text(label),
                anchor=Anchor.parse(anchor),
                position=len(entries),
                in_frame=in_frame,
            ))
    return Shard(bucket_id=bucket_id, entries=tuple(entries), diagnostics=tuple(problems))


def dump_shard(shard: Shard) -> str:
    """Serialize a shard to the JSON wire format (one record per display name run)."""
    records: List[list] = []
    for e in shard.entries:
        occ = [e.qualified_label, str(e.anchor)]
        if records and records[-1][0] == e.display_name:
            records[-1][1].append(occ)
        else:
            records.append([e.display_name, [occ]])
    return json.dumps(records, ensure_ascii=False)


# ---------- manifest ----------

@dataclass
class Manifest:
    """Doxygen's searchdata.js: which leading characters each index section has."""
    sections: Dict[str, str] = field(default_factory=dict)   # index name -> alphabet
    labels: Dict[str, str] = field(default_factory=dict)     # index name -> human label

    def partition(self, index_name: str) -> Optional[Partition]:
        alphabet = self.sections.get(index_name)
        if alphabet is None:
            return None
        return Partition(index_name=index_name, alphabet=alphabet)


def _js_objects(text: str) -> Dict[str, Dict[int, str]]:
    out: Dict[str, Dict[int, str]] = {}
    for m in _JS_OBJECT.finditer(text):
        pairs: Dict[int, str] = {}
        for p in _JS_PAIR.finditer(m.group("body")):
            value = json.loads('"' + p.group("value") + '"')
            pairs[int(p.group("key"))] = html.unescape(value)
        out[m.group("name")] = pairs
    return out


def parse_manifest(text: str) -> Manifest:
    objs = _js_objects(text)
    contents = objs.get("indexSectionsWithContent", {})
    names = objs.get("indexSectionNames", {})
    labels = objs.get("indexSectionLabels", {})
    if not names:
        raise ValueError("manifest has no indexSectionNames")

    manifest = Manifest()
    for key, name in names.items():
        manifest.sections[name] = contents.get(key, "")
        if key in labels:
            manifest.labels[name] = labels[key]
    log.info("Manifest sections: %s", ", ".join(manifest.sections))
    return manifest
