"""Lookup tables for the calculators.

Loads the YAML definitions shipped in calculators/definitions:
- managed_disk_tiers.yaml: size -> SKU tier per disk family
- anf_service_levels.yaml: throughput per TiB and minimum capacities

A malformed file raises ValueError with the file name in the message so a
broken deployment fails on first use instead of producing wrong numbers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..config import DEFINITIONS_DIR

DISK_TIERS_FILE = "managed_disk_tiers.yaml"
ANF_LEVELS_FILE = "anf_service_levels.yaml"


@dataclass(frozen=True)
class DiskFamily:
    name: str
    product: str
    match: Tuple[str, ...]
    tiers: Tuple[Tuple[str, float], ...] = ()  # (sku, max_gib), ascending
    flexible: bool = False

    def matches(self, disk_type: str) -> bool:
        dt = (disk_type or "").strip().lower()
        return any(m in dt for m in self.match)

    def tier_for(self, size_gb: float) -> str:
        if self.flexible or not self.tiers:
            return self.name
        for sku, max_gib in self.tiers:
            if size_gb <= max_gib:
                return sku
        return self.tiers[-1][0]


@dataclass(frozen=True)
class ServiceLevel:
    name: str
    throughput_mib_per_tib: float
    cool_access_throughput_mib_per_tib: Optional[float] = None

    def throughput_per_tib(self, cool_access: bool) -> float:
        if cool_access and self.cool_access_throughput_mib_per_tib is not None:
            return self.cool_access_throughput_mib_per_tib
        return self.throughput_mib_per_tib


@dataclass(frozen=True)
class AnfLevels:
    levels: Dict[str, ServiceLevel] = field(default_factory=dict)
    default: str = "Standard"
    min_regular_gib: float = 50
    min_cool_access_gib: float = 2400

    def get(self, name: str) -> ServiceLevel:
        key = (name or "").strip().lower()
        if key in self.levels:
            return self.levels[key]
        return self.levels[self.default.lower()]


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as ex:
        raise ValueError(f"Invalid YAML in {path.name}: {ex}") from ex
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping in {path.name}")
    return data


def _require(obj: Dict[str, Any], key: str, *, ctx: str) -> Any:
    if key not in obj:
        raise ValueError(f"Missing required key '{key}' in {ctx}")
    return obj[key]


def _as_match(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    return tuple(str(v).strip().lower() for v in (value or []) if str(v).strip())


def _parse_family(obj: Any, *, ctx: str, flexible: bool) -> DiskFamily:
    if not isinstance(obj, dict):
        raise ValueError(f"disk family must be an object in {ctx}")
    name = str(_require(obj, "name", ctx=ctx)).strip()
    match = _as_match(obj.get("match")) or (name.lower(),)
    tiers: List[Tuple[str, float]] = []
    for i, t in enumerate(obj.get("tiers") or []):
        tctx = f"{ctx}.tiers[{i}]"
        if not isinstance(t, dict):
            raise ValueError(f"tier must be an object in {tctx}")
        tiers.append((str(_require(t, "sku", ctx=tctx)), float(_require(t, "max_gib", ctx=tctx))))
    if not flexible and not tiers:
        raise ValueError(f"Missing tiers in {ctx}")
    tiers.sort(key=lambda t: t[1])
    return DiskFamily(
        name=name,
        product=str(obj.get("product") or name),
        match=match,
        tiers=tuple(tiers),
        flexible=flexible,
    )


@lru_cache(maxsize=None)
def load_disk_families(definitions_dir: Optional[Path] = None) -> Tuple[DiskFamily, ...]:
    """Flexible families first: their match strings are supersets of the classic ones."""
    path = Path(definitions_dir or DEFINITIONS_DIR) / DISK_TIERS_FILE
    data = _load_yaml(path)
    out: List[DiskFamily] = []
    for i, f in enumerate(data.get("flexible") or []):
        out.append(_parse_family(f, ctx=f"{path.name}.flexible[{i}]", flexible=True))
    for i, f in enumerate(_require(data, "families", ctx=path.name) or []):
        out.append(_parse_family(f, ctx=f"{path.name}.families[{i}]", flexible=False))
    return tuple(out)


def find_disk_family(disk_type: str, definitions_dir: Optional[Path] = None) -> Optional[DiskFamily]:
    for fam in load_disk_families(definitions_dir):
        if fam.matches(disk_type):
            return fam
    return None


@lru_cache(maxsize=None)
def load_anf_levels(definitions_dir: Optional[Path] = None) -> AnfLevels:
    path = Path(definitions_dir or DEFINITIONS_DIR) / ANF_LEVELS_FILE
    data = _load_yaml(path)
    levels: Dict[str, ServiceLevel] = {}
    for i, lv in enumerate(_require(data, "service_levels", ctx=path.name) or []):
        ctx = f"{path.name}.service_levels[{i}]"
        if not isinstance(lv, dict):
            raise ValueError(f"service level must be an object in {ctx}")
        name = str(_require(lv, "name", ctx=ctx)).strip()
        cool = lv.get("cool_access_throughput_mib_per_tib")
        levels[name.lower()] = ServiceLevel(
            name=name,
            throughput_mib_per_tib=float(_require(lv, "throughput_mib_per_tib", ctx=ctx)),
            cool_access_throughput_mib_per_tib=float(cool) if cool is not None else None,
        )
    default = str(data.get("default") or "Standard")
    if default.lower() not in levels:
        raise ValueError(f"Default service level '{default}' not defined in {path.name}")
    minimums = data.get("minimum_capacity_gib") or {}
    return AnfLevels(
        levels=levels,
        default=default,
        min_regular_gib=float(minimums.get("regular", 50)),
        min_cool_access_gib=float(minimums.get("cool_access", 2400)),
    )
