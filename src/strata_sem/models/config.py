"""YAML configuration for heterogeneity libraries.

Several YAML files can be merged (later files override earlier ones,
nested mappings are merged recursively). The heterogeneity list itself is
replaced wholesale by the last file that defines it.

Example file::

    r_outer: 6371.0        # km
    flattening: 0.0
    heterogeneity:
      - model: bubble
        params: [100, 0, 0, 50, 20, 0.05, 0]
      - "bubble$300$45$90$0$40$-0.02$1$0$1$1"

Example:
    >>> config = ConfigManager(["model.yaml"])
    >>> library = config.build_library()
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from strata_sem.geometry.spatial import R_EARTH

from .base import HeterogeneityConfigError
from .library import HeterogeneityLibrary

logger = logging.getLogger(__name__)

# Separator of the compact "model$p0$p1$..." record form
RECORD_SEPARATOR = "$"


def _merge_config(base: Mapping, override: Any, origin: str) -> dict[str, Any]:
    """Recursively merge override into a copy of base.

    Nested mappings merge key by key; any other value, lists included,
    replaces the earlier one.

    Raises:
        HeterogeneityConfigError: If override is not a mapping
    """
    if override is None:
        return dict(base)
    if not isinstance(override, Mapping):
        raise HeterogeneityConfigError(
            f"Top level of {origin} must be a mapping, got {type(override).__name__}"
        )
    merged = dict(base)
    for key, value in override.items():
        earlier = merged.get(key)
        if isinstance(value, Mapping) and isinstance(earlier, Mapping):
            merged[key] = _merge_config(earlier, value, f"{origin}:{key}")
        else:
            merged[key] = value
    return merged


def _lookup(data: Mapping, dotted_path: str, default: Any = None) -> Any:
    node: Any = data
    for key in dotted_path.split("."):
        if not isinstance(node, Mapping) or key not in node:
            return default
        node = node[key]
    return node


def _to_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise HeterogeneityConfigError(f"'{name}' must be a number, got {value!r}") from e


def _parse_compact(record: str) -> tuple[str, list[float]]:
    name, *fields = record.split(RECORD_SEPARATOR)
    # A single trailing separator is tolerated
    if fields and not fields[-1].strip():
        fields = fields[:-1]
    params = []
    for position, text in enumerate(fields):
        if not text.strip():
            raise HeterogeneityConfigError(
                f"Empty parameter at position {position} in record '{record}'"
            )
        try:
            params.append(float(text))
        except ValueError as e:
            raise HeterogeneityConfigError(f"Invalid number in record '{record}': {e}") from e
    return name.strip(), params


def parse_record(record: Any) -> tuple[str, list[float]]:
    """Parse one heterogeneity record.

    Accepts either a mapping with ``model`` and ``params`` keys or the
    compact string form ``"bubble$100$0$0$50$20$0.05$0"``.

    Returns:
        Tuple of (model name, parameter list)

    Raises:
        HeterogeneityConfigError: If the record cannot be parsed
    """
    if isinstance(record, str):
        return _parse_compact(record)

    if isinstance(record, Mapping):
        if "model" not in record:
            raise HeterogeneityConfigError(f"Record is missing 'model': {dict(record)}")
        params = record.get("params", [])
        if isinstance(params, (str, bytes)) or not isinstance(params, Iterable):
            raise HeterogeneityConfigError(
                f"'params' must be a list of numbers, got {params!r}"
            )
        try:
            values = [float(p) for p in params]
        except (TypeError, ValueError) as e:
            raise HeterogeneityConfigError(
                f"Invalid number in params of '{record['model']}': {e}"
            ) from e
        return str(record["model"]), values

    raise HeterogeneityConfigError(f"Unsupported heterogeneity record: {record!r}")


class ConfigManager:
    """Load and merge heterogeneity configuration files.

    Args:
        files: YAML files to load, later ones overriding earlier ones
        data: Extra mapping merged on top of the files

    Attributes:
        sources: Paths of the files that were actually loaded
    """

    def __init__(self, files: Iterable[str | Path] | None = None, data: dict | None = None):
        merged: dict[str, Any] = {}
        self.sources: list[str] = []
        for p in files or []:
            path = Path(p)
            if not path.exists():
                raise FileNotFoundError(f"Configuration file not found: {path}")
            with open(path, encoding="utf-8") as f:
                merged = _merge_config(merged, yaml.safe_load(f), str(path))
            self.sources.append(str(path))
        if data:
            merged = _merge_config(merged, data, "inline data")
        self._data = merged

    @property
    def data(self) -> dict:
        """Merged configuration mapping."""
        return self._data

    def get(self, path: str, default: Any = None) -> Any:
        """Read a value by dotted path, e.g. ``"output.compression"``."""
        return _lookup(self._data, path, default)

    @property
    def r_outer(self) -> float:
        """Outer radius of the reference sphere in meters."""
        if "r_outer" not in self._data:
            return R_EARTH
        r_outer = _to_float(self._data["r_outer"], "r_outer") * 1e3
        if r_outer <= 0:
            raise HeterogeneityConfigError(f"'r_outer' must be positive, got {r_outer / 1e3} km")
        return r_outer

    @property
    def flattening(self) -> float:
        return _to_float(self._data.get("flattening", 0.0), "flattening")

    def records(self) -> list[tuple[str, list[float]]]:
        """Parsed heterogeneity records, in declaration order."""
        raw = self.get("heterogeneity", []) or []
        if not isinstance(raw, list):
            raise HeterogeneityConfigError("'heterogeneity' must be a list of records")
        return [parse_record(record) for record in raw]

    def build_library(self) -> HeterogeneityLibrary:
        """Build the configured heterogeneity library."""
        library = HeterogeneityLibrary.from_records(
            self.records(), r_outer=self.r_outer, flattening=self.flattening
        )
        logger.debug("Library built from %s", ", ".join(self.sources) or "<inline data>")
        return library


def load_library(*files: str | Path) -> HeterogeneityLibrary:
    """Build a heterogeneity library from one or more YAML files."""
    return ConfigManager(files).build_library()
