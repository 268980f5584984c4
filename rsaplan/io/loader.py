"""
Planning instance loader.

Reads one or more JSON or YAML input files, merges them section by
section and builds a validated :class:`PlanningInstance`.

Input layout::

    settings:    {spectrum_ceiling, k_paths, guard_band, slot_capacity, ...}
    nodes:       [0, 1, ...]                      (optional, taken from links)
    links:       [{source, destination, distance}, ...]
    modulations: [{name, reach, efficiency?}, ...]
    zones:       [{name, capacity}, ...]          (optional)
    requests:    [{id, source, destination, demand,
                   paths?: [[node, ...], ...],
                   required_slots?: [{path, modulation, slots}, ...]}, ...]
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from rsaplan.domain.config import PlanningConfig
from rsaplan.domain.instance import PlanningInstance
from rsaplan.domain.network import Link, Modulation, Topology, Zone
from rsaplan.domain.request import TrafficRequest
from rsaplan.errors import InputValidationError
from rsaplan.utils.logging_config import get_logger

logger = get_logger(__name__)

LIST_SECTIONS = ("nodes", "links", "modulations", "zones", "requests")
SECTIONS = ("settings",) + LIST_SECTIONS


def load_raw(path: str | Path) -> dict[str, Any]:
    """
    Read one input file.

    :param path: JSON (``.json``) or YAML (``.yaml``/``.yml``) file
    :type path: str | Path
    :return: Parsed top-level mapping
    :rtype: dict[str, Any]
    :raises InputValidationError: If the file is missing, has an unsupported
        extension, cannot be parsed or is not a mapping
    """
    path = Path(path)
    if not path.is_file():
        raise InputValidationError(f"Input file not found: {path}")

    suffix = path.suffix.lower()
    try:
        with open(path, encoding="utf-8") as f:
            if suffix == ".json":
                raw = json.load(f)
            elif suffix in (".yaml", ".yml"):
                raw = yaml.safe_load(f)
            else:
                raise InputValidationError(f"Unsupported input file format: {path}")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InputValidationError(f"Cannot parse {path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InputValidationError(f"{path}: top level must be a mapping")
    unknown = sorted(set(raw) - set(SECTIONS))
    if unknown:
        raise InputValidationError(f"{path}: unknown section(s) {', '.join(unknown)}")
    logger.debug("Loaded %s with section(s) %s", path, sorted(raw))
    return raw


def merge_raw(documents: Iterable[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Merge parsed input documents.

    Later documents override individual settings and extend list sections.

    :param documents: Parsed documents in command-line order
    :type documents: Iterable[Mapping[str, Any]]
    :return: Merged document
    :rtype: dict[str, Any]
    """
    merged: dict[str, Any] = {"settings": {}}
    merged.update({section: [] for section in LIST_SECTIONS})
    for document in documents:
        settings = document.get("settings") or {}
        if not isinstance(settings, Mapping):
            raise InputValidationError("'settings' must be a mapping")
        merged["settings"].update(settings)
        for section in LIST_SECTIONS:
            entries = document.get(section) or []
            if not isinstance(entries, list):
                raise InputValidationError(f"'{section}' must be a list")
            merged[section].extend(entries)
    return merged


def _field(entry: Any, key: str, where: str, required: bool = True) -> Any:
    if not isinstance(entry, Mapping):
        raise InputValidationError(f"{where}: expected a mapping, got {entry!r}")
    if key not in entry:
        if required:
            raise InputValidationError(f"{where}: missing '{key}'")
        return None
    return entry[key]


def _number(value: Any, where: str) -> float:
    if isinstance(value, bool):
        raise InputValidationError(f"{where}: expected a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise InputValidationError(f"{where}: expected a number, got {value!r}") from e


def _node_path(value: Any, where: str) -> tuple:
    if not isinstance(value, list):
        raise InputValidationError(f"{where}: a path must be a list of nodes")
    return tuple(value)


def _build_topology(raw: Mapping[str, Any]) -> Topology:
    links = []
    for i, entry in enumerate(raw["links"]):
        where = f"links[{i}]"
        links.append(
            Link(
                _field(entry, "source", where),
                _field(entry, "destination", where),
                _number(_field(entry, "distance", where), f"{where}.distance"),
            )
        )
    nodes = list(raw["nodes"])
    if not nodes:
        for link in links:
            for node in (link.endpoint_a, link.endpoint_b):
                if node not in nodes:
                    nodes.append(node)
    return Topology(nodes, links)


def _build_modulations(raw: Mapping[str, Any]) -> list[Modulation]:
    modulations = []
    for i, entry in enumerate(raw["modulations"]):
        where = f"modulations[{i}]"
        efficiency = _field(entry, "efficiency", where, required=False)
        modulations.append(
            Modulation(
                name=str(_field(entry, "name", where)),
                reach=_number(_field(entry, "reach", where), f"{where}.reach"),
                efficiency=(
                    1.0
                    if efficiency is None
                    else _number(efficiency, f"{where}.efficiency")
                ),
            )
        )
    return modulations


def _build_zones(raw: Mapping[str, Any]) -> list[Zone]:
    zones = []
    for i, entry in enumerate(raw["zones"]):
        where = f"zones[{i}]"
        capacity = _number(_field(entry, "capacity", where), f"{where}.capacity")
        if not capacity.is_integer():
            raise InputValidationError(f"{where}.capacity must be a whole slot count")
        zones.append(Zone(name=str(_field(entry, "name", where)), capacity=int(capacity)))
    return zones


def build_instance(raw: Mapping[str, Any]) -> PlanningInstance:
    """
    Build a planning instance from a merged document.

    :param raw: Merged input document
    :type raw: Mapping[str, Any]
    :return: Validated planning instance
    :rtype: PlanningInstance
    :raises ConfigError: If the settings are invalid
    :raises InputValidationError: If any section is malformed or inconsistent
    """
    config = PlanningConfig.from_dict(dict(raw["settings"]))
    topology = _build_topology(raw)

    requests = []
    supplied_paths: dict[Any, list[tuple]] = {}
    slot_overrides: dict[tuple, int] = {}
    for i, entry in enumerate(raw["requests"]):
        where = f"requests[{i}]"
        request = TrafficRequest(
            request_id=_field(entry, "id", where),
            source=_field(entry, "source", where),
            destination=_field(entry, "destination", where),
            demand=_number(_field(entry, "demand", where), f"{where}.demand"),
        )
        requests.append(request)

        paths = _field(entry, "paths", where, required=False)
        if paths is not None:
            if not isinstance(paths, list):
                raise InputValidationError(f"{where}.paths must be a list")
            supplied_paths[request.request_id] = [
                _node_path(path, f"{where}.paths[{j}]") for j, path in enumerate(paths)
            ]

        for j, override in enumerate(
            _field(entry, "required_slots", where, required=False) or []
        ):
            override_where = f"{where}.required_slots[{j}]"
            slots = _number(_field(override, "slots", override_where), override_where)
            if not slots.is_integer():
                raise InputValidationError(f"{override_where}: slots must be whole")
            key = (
                request.request_id,
                _node_path(_field(override, "path", override_where), override_where),
                str(_field(override, "modulation", override_where)),
            )
            slot_overrides[key] = int(slots)

    instance = PlanningInstance(
        topology=topology,
        requests=requests,
        modulations=_build_modulations(raw),
        config=config,
        zones=_build_zones(raw),
        supplied_paths=supplied_paths,
        slot_overrides=slot_overrides,
    )
    logger.info("Loaded %r", instance)
    return instance


def load_instance(paths: str | Path | Iterable[str | Path]) -> PlanningInstance:
    """
    Load, merge and build a planning instance from input files.

    :param paths: One input file or several, merged in order
    :type paths: str | Path | Iterable[str | Path]
    :return: Validated planning instance
    :rtype: PlanningInstance
    :raises ConfigError: If the settings are invalid
    :raises InputValidationError: If any file is missing or malformed

    Example:
        >>> instance = load_instance(["network.yaml", "traffic.json"])
    """
    if isinstance(paths, (str, Path)):
        paths = [paths]
    paths = list(paths)
    if not paths:
        raise InputValidationError("No input files given")
    return build_instance(merge_raw(load_raw(path) for path in paths))
