"""Load and resolve SignatureTables from YAML files."""

from __future__ import annotations

import importlib.resources
from pathlib import Path

import yaml

from interviewguard.signatures.models import SignatureTables

_PRESET_PREFIX = "preset:"
_DEFAULT_PRESET = "default"

_TABLE_FIELDS = (
    "coding_tools",
    "overlay",
    "recording",
    "system_processes",
    "blacklist",
    "screenshot_prefixes",
)


def load_signatures(
    path: str | Path, _resolved: set[str] | None = None
) -> SignatureTables:
    """Load signature tables from a YAML file path."""
    text = Path(path).read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("Signature YAML must be a mapping")
    return _build_tables(data, _resolved=_resolved if _resolved is not None else set())


def load_signatures_from_string(text: str) -> SignatureTables:
    """Parse a YAML string into SignatureTables, resolving inheritance."""
    data = yaml.safe_load(text)
    if not isinstance(data, dict):
        raise ValueError("Signature YAML must be a mapping")
    return _build_tables(data, _resolved=set())


def default_signatures() -> SignatureTables:
    """The packaged signature preset."""
    return _load_preset(_DEFAULT_PRESET, set())


def _build_tables(data: dict, _resolved: set[str]) -> SignatureTables:
    name = data.get("name", "unnamed")

    if name in _resolved:
        raise ValueError(f"Circular signature inheritance detected: {name}")
    _resolved.add(name)

    inherit_list = data.get("inherit", [])
    if isinstance(inherit_list, str):
        inherit_list = [inherit_list]

    parents = [_load_ref(ref, _resolved) for ref in inherit_list]

    tables: dict[str, tuple[str, ...]] = {}
    for field_name in _TABLE_FIELDS:
        own = _parse_entries(data.get(field_name))
        if own is None and not parents:
            # Field absent everywhere: keep the dataclass default
            continue
        merged: list[str] = list(own or ())
        for parent in parents:
            for entry in getattr(parent, field_name):
                if entry not in merged:
                    merged.append(entry)
        tables[field_name] = tuple(merged)

    return SignatureTables(
        name=name,
        description=data.get("description", ""),
        inherit=tuple(inherit_list),
        **tables,
    )


def _parse_entries(raw: object) -> list[str] | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        raise ValueError(f"Signature table must be a list of strings, got {raw!r}")
    return [str(entry) for entry in raw if str(entry)]


def _load_ref(ref: str, _resolved: set[str]) -> SignatureTables:
    if ref.startswith(_PRESET_PREFIX):
        preset_name = ref[len(_PRESET_PREFIX) :]
        return _load_preset(preset_name, _resolved)
    return load_signatures(ref, _resolved=_resolved)


def _load_preset(name: str, _resolved: set[str]) -> SignatureTables:
    filename = f"{name}.yaml"
    pkg = importlib.resources.files("interviewguard.signatures.presets")
    resource = pkg.joinpath(filename)
    text = resource.read_text(encoding="utf-8")
    data = yaml.safe_load(text)
    return _build_tables(data, _resolved)
