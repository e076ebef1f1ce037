"""Regex-based import/export/definition extractor for ECMAScript-family sources.

This is deliberately not a real parser. Each construct has its own
independent pattern, so one odd statement can only cost that statement:

- static imports (named, namespace, default, side-effect)
- dynamic ``import('...')`` calls with a literal specifier
- CommonJS ``require('...')`` bound to a plain or destructured name
- re-exports (``export ... from '...'``), which are both an import and exports

Known blind spots: module syntax inside string or template literals and
inside comments is matched as if it were code, and definitions are only
picked up when they start at column 0.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Tuple

from .models import ParsedFileStructure, ParsedImport

logger = logging.getLogger(__name__)

_IDENT = r"[\w$]+"

STATIC_IMPORT_RE = re.compile(
    r"\bimport\s+(?:type\s+)?"
    rf"(?:(?P<default>{_IDENT})\s*,?\s*)?"
    rf"(?:(?P<named>\{{[^}}]*\}})|(?P<namespace>\*\s*as\s+{_IDENT}))?"
    r"\s*from\s*['\"](?P<spec>[^'\"]+)['\"]"
)
SIDE_EFFECT_IMPORT_RE = re.compile(r"\bimport\s*['\"](?P<spec>[^'\"]+)['\"]")
DYNAMIC_IMPORT_RE = re.compile(r"\bimport\s*\(\s*['\"](?P<spec>[^'\"]+)['\"]\s*\)")
REQUIRE_RE = re.compile(
    rf"\b(?:const|let|var)\s+(?:(?P<named>\{{[^}}]*\}})|(?P<default>{_IDENT}))"
    r"\s*=\s*require\s*\(\s*['\"](?P<spec>[^'\"]+)['\"]\s*\)"
)
REEXPORT_RE = re.compile(
    r"\bexport\s+(?:type\s+)?"
    rf"(?:(?P<named>\{{[^}}]*\}})|\*(?:\s*as\s+(?P<namespace>{_IDENT}))?)"
    r"\s*from\s*['\"](?P<spec>[^'\"]+)['\"]"
)

EXPORT_DECL_RE = re.compile(
    r"\bexport\s+(?:declare\s+)?"
    r"(?:(?:async\s+)?function(?:\s*\*\s*|\s+)"
    r"|(?:(?:abstract\s+)?class|const\s+enum|const|let|var|enum|interface|type|namespace)\s+)"
    rf"(?P<name>{_IDENT})"
)
EXPORT_DEFAULT_RE = re.compile(
    r"\bexport\s+default\s+"
    r"(?:(?:(?:abstract\s+)?class\b|(?:async\s+)?function\b(?:\s*\*)?)\s*(?!extends\b)(?P<decl>[\w$]+)?"
    rf"|(?P<ident>{_IDENT})\s*(?:;|$))?",
    re.MULTILINE,
)
EXPORT_LIST_RE = re.compile(r"\bexport\s+(?:type\s+)?\{(?P<names>[^}]*)\}(?!\s*from\b)")

FUNCTION_DEF_RE = re.compile(
    r"^(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:async\s+)?function(?:\s*\*\s*|\s+)"
    rf"(?P<name>{_IDENT})",
    re.MULTILINE,
)
CLASS_DEF_RE = re.compile(
    r"^(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?class\s+"
    rf"(?!extends\b|implements\b)(?P<name>{_IDENT})",
    re.MULTILINE,
)

_ALIAS_RE = re.compile(r"\s+as\s+")
_COMMENT_RE = re.compile(r"/\*.*?\*/|//[^\n]*", re.DOTALL)


def is_relative_specifier(specifier: str) -> bool:
    return specifier.startswith(".") or specifier.startswith("/")


def _split_names(braced: str, keep_alias: bool) -> List[str]:
    """Split ``{ a, b as c, type D }`` into names.

    With *keep_alias* the exported alias (``c``) is returned, otherwise
    the original binding (``b``). ``a: b`` destructuring keeps the key.
    """
    inner = _COMMENT_RE.sub("", braced.strip().strip("{}"))
    names: List[str] = []
    for part in inner.split(","):
        part = part.strip()
        if not part:
            continue
        if part.startswith("type "):
            part = part[5:].strip()
        pieces = _ALIAS_RE.split(part)
        name = pieces[-1] if keep_alias else pieces[0]
        name = name.split(":")[0].split("=")[0].strip()
        if name.startswith("..."):
            name = name[3:]
        if re.fullmatch(_IDENT, name):
            names.append(name)
    return names


def _add_unique(target: List[str], names: List[str]) -> None:
    for name in names:
        if name not in target:
            target.append(name)


def extract_imports(content: str) -> List[ParsedImport]:
    found: List[Tuple[int, str, bool, List[str]]] = []

    for match in STATIC_IMPORT_RE.finditer(content):
        names: List[str] = []
        if match.group("named"):
            names.extend(_split_names(match.group("named"), keep_alias=False))
        if match.group("namespace"):
            names.append(match.group("namespace").split()[-1])
        if match.group("default"):
            names.insert(0, match.group("default"))
        found.append((match.start(), match.group("spec"), False, names))

    for match in SIDE_EFFECT_IMPORT_RE.finditer(content):
        found.append((match.start(), match.group("spec"), False, []))

    for match in DYNAMIC_IMPORT_RE.finditer(content):
        found.append((match.start(), match.group("spec"), True, []))

    for match in REQUIRE_RE.finditer(content):
        if match.group("named"):
            names = _split_names(match.group("named"), keep_alias=False)
        else:
            names = [match.group("default")]
        found.append((match.start(), match.group("spec"), False, names))

    for match in REEXPORT_RE.finditer(content):
        found.append((match.start(), match.group("spec"), False, []))

    found.sort(key=lambda item: item[0])

    by_spec: Dict[str, ParsedImport] = {}
    for _, spec, dynamic, names in found:
        existing = by_spec.get(spec)
        if existing is None:
            by_spec[spec] = ParsedImport(
                specifier=spec,
                is_relative=is_relative_specifier(spec),
                is_dynamic=dynamic,
                imported_names=list(dict.fromkeys(names)),
            )
            continue
        # Any static use of the specifier wins over a dynamic one.
        existing.is_dynamic = existing.is_dynamic and dynamic
        _add_unique(existing.imported_names, names)
    return list(by_spec.values())


def extract_exports(content: str) -> List[str]:
    found: List[Tuple[int, List[str]]] = []

    for match in EXPORT_DECL_RE.finditer(content):
        found.append((match.start(), [match.group("name")]))

    for match in EXPORT_DEFAULT_RE.finditer(content):
        name = match.group("decl") or match.group("ident") or "default"
        found.append((match.start(), [name]))

    for match in EXPORT_LIST_RE.finditer(content):
        found.append((match.start(), _split_names(match.group("names"), keep_alias=True)))

    for match in REEXPORT_RE.finditer(content):
        if match.group("named"):
            found.append((match.start(), _split_names(match.group("named"), keep_alias=True)))
        elif match.group("namespace"):
            found.append((match.start(), [match.group("namespace")]))

    found.sort(key=lambda item: item[0])
    exports: List[str] = []
    for _, names in found:
        _add_unique(exports, names)
    return exports


def extract_definitions(content: str) -> List[str]:
    found = [(m.start(), m.group("name")) for m in FUNCTION_DEF_RE.finditer(content)]
    found.extend((m.start(), m.group("name")) for m in CLASS_DEF_RE.finditer(content))
    found.sort(key=lambda item: item[0])

    definitions: List[str] = []
    _add_unique(definitions, [name for _, name in found])
    return definitions


def parse_content(content: str) -> ParsedFileStructure:
    """Extract imports, exports and definitions from source text.

    Pure and deterministic: the same text always yields the same structure.
    """
    if not content or not content.strip():
        return ParsedFileStructure()
    return ParsedFileStructure(
        imports=extract_imports(content),
        exports=extract_exports(content),
        definitions=extract_definitions(content),
    )


def parse_file(file_path: Path) -> ParsedFileStructure:
    """Read *file_path* and extract its structure; unreadable files yield nothing."""
    try:
        content = Path(file_path).read_text(encoding="utf-8-sig", errors="ignore")
    except OSError as exc:
        logger.debug("Could not read %s: %s", file_path, exc)
        return ParsedFileStructure()
    return parse_content(content)
