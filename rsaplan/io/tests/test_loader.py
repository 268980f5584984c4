"""Unit tests for rsaplan.io.loader module."""

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from rsaplan.errors import ConfigError, InputValidationError
from rsaplan.io.loader import build_instance, load_instance, load_raw, merge_raw


@pytest.fixture
def network_document() -> dict[str, Any]:
    """Topology, modulation and settings sections of the reference scenario."""
    return {
        "settings": {"spectrum_ceiling": 100, "guard_band": 1, "k_paths": 2},
        "links": [
            {"source": 0, "destination": 1, "distance": 200},
            {"source": 0, "destination": 3, "distance": 500},
            {"source": 1, "destination": 2, "distance": 300},
            {"source": 1, "destination": 4, "distance": 400},
            {"source": 3, "destination": 4, "distance": 250},
            {"source": 2, "destination": 3, "distance": 350},
        ],
        "modulations": [{"name": "m1", "reach": 400}, {"name": "m2", "reach": 600}],
    }


@pytest.fixture
def traffic_document() -> dict[str, Any]:
    """Traffic section of the reference scenario with slot overrides."""
    return {
        "requests": [
            {
                "id": 0,
                "source": 0,
                "destination": 2,
                "demand": 100,
                "required_slots": [
                    {"path": [0, 1, 2], "modulation": "m1", "slots": 10},
                    {"path": [0, 1, 2], "modulation": "m2", "slots": 8},
                    {"path": [0, 3, 2], "modulation": "m2", "slots": 12},
                ],
            }
        ]
    }


def _write_yaml(path: Path, document: dict[str, Any]) -> Path:
    path.write_text(yaml.safe_dump(document), encoding="utf-8")
    return path


def _write_json(path: Path, document: dict[str, Any]) -> Path:
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


class TestLoadRaw:
    """Tests for reading a single input file."""

    def test_yaml_and_json_parse_alike(
        self, tmp_path: Path, network_document: dict[str, Any]
    ) -> None:
        """Test that both supported formats give the same mapping."""
        from_yaml = load_raw(_write_yaml(tmp_path / "net.yaml", network_document))
        from_json = load_raw(_write_json(tmp_path / "net.json", network_document))

        assert from_yaml == from_json == network_document

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """Test that an absent file is an input error."""
        with pytest.raises(InputValidationError, match="not found"):
            load_raw(tmp_path / "absent.yaml")

    def test_unsupported_suffix_raises(self, tmp_path: Path) -> None:
        """Test that only JSON and YAML are read."""
        path = tmp_path / "net.toml"
        path.write_text("[settings]\n", encoding="utf-8")

        with pytest.raises(InputValidationError, match="Unsupported"):
            load_raw(path)

    def test_malformed_json_raises(self, tmp_path: Path) -> None:
        """Test that parse errors become input errors."""
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(InputValidationError, match="Cannot parse"):
            load_raw(path)

    def test_unknown_section_raises(self, tmp_path: Path) -> None:
        """Test that typos in section names are caught."""
        path = _write_yaml(tmp_path / "net.yaml", {"link": []})

        with pytest.raises(InputValidationError, match="unknown section"):
            load_raw(path)

    def test_empty_file_is_empty_document(self, tmp_path: Path) -> None:
        """Test that an empty YAML file contributes nothing."""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_raw(path) == {}


class TestMergeRaw:
    """Tests for merging several documents."""

    def test_settings_override_and_lists_extend(self) -> None:
        """Test merge order across documents."""
        merged = merge_raw(
            [
                {"settings": {"spectrum_ceiling": 100, "k_paths": 2}, "nodes": [0]},
                {"settings": {"k_paths": 4}, "nodes": [1, 2]},
            ]
        )

        assert merged["settings"] == {"spectrum_ceiling": 100, "k_paths": 4}
        assert merged["nodes"] == [0, 1, 2]
        assert merged["requests"] == []

    def test_list_section_must_be_a_list(self) -> None:
        """Test that list sections are type checked."""
        with pytest.raises(InputValidationError, match="'links' must be a list"):
            merge_raw([{"links": {"source": 0}}])


class TestBuildInstance:
    """Tests for building a planning instance from a merged document."""

    def test_reference_instance(
        self, network_document: dict[str, Any], traffic_document: dict[str, Any]
    ) -> None:
        """Test the reference scenario round trip through the loader."""
        # Act
        instance = build_instance(merge_raw([network_document, traffic_document]))

        # Assert
        assert instance.topology.nodes == (0, 1, 2, 3, 4)
        assert len(instance.topology.links) == 6
        assert instance.config.k_paths == 2
        assert instance.request_ids == (0,)
        assert instance.slot_overrides[(0, (0, 1, 2), "m2")] == 8
        assert instance.get_modulation("m1").efficiency == 1.0
        assert [zone.name for zone in instance.zones] == ["default"]

    def test_zones_and_supplied_paths(self, network_document: dict[str, Any]) -> None:
        """Test optional zone and path sections."""
        document = dict(
            network_document,
            zones=[{"name": "low", "capacity": 60}, {"name": "high", "capacity": 40}],
            requests=[
                {
                    "id": "r1",
                    "source": 0,
                    "destination": 2,
                    "demand": 40,
                    "paths": [[0, 3, 2]],
                }
            ],
        )

        instance = build_instance(merge_raw([document]))

        assert [(zone.name, zone.offset) for zone in instance.zones] == [
            ("low", 0),
            ("high", 60),
        ]
        assert instance.supplied_paths["r1"] == ((0, 3, 2),)

    def test_missing_field_names_its_location(
        self, network_document: dict[str, Any]
    ) -> None:
        """Test that malformed entries point at the offending field."""
        document = dict(network_document, requests=[{"id": 1, "source": 0}])

        with pytest.raises(InputValidationError, match=r"requests\[0\]: missing"):
            build_instance(merge_raw([document]))

    def test_non_numeric_distance_raises(
        self, network_document: dict[str, Any]
    ) -> None:
        """Test that link distances must be numbers."""
        network_document["links"][0]["distance"] = "far"

        with pytest.raises(InputValidationError, match=r"links\[0\]\.distance"):
            build_instance(merge_raw([network_document]))

    def test_null_setting_is_config_error(
        self, network_document: dict[str, Any]
    ) -> None:
        """Test that a null guard band is reported, not crashed on."""
        network_document["settings"]["guard_band"] = None

        with pytest.raises(ConfigError, match="guard_band"):
            build_instance(merge_raw([network_document]))

    def test_missing_ceiling_raises(self, network_document: dict[str, Any]) -> None:
        """Test that the spectrum ceiling is mandatory."""
        network_document["settings"] = {"k_paths": 2}

        with pytest.raises(ConfigError, match="spectrum_ceiling"):
            build_instance(merge_raw([network_document]))


def test_load_instance_merges_files(
    tmp_path: Path,
    network_document: dict[str, Any],
    traffic_document: dict[str, Any],
) -> None:
    """Test loading a YAML network and a JSON traffic file together."""
    network = _write_yaml(tmp_path / "network.yaml", network_document)
    traffic = _write_json(tmp_path / "traffic.json", traffic_document)

    instance = load_instance([network, traffic])

    assert instance.request_ids == (0,)
    assert instance.config.spectrum_ceiling == 100


def test_load_instance_requires_files() -> None:
    """Test that at least one input file is needed."""
    with pytest.raises(InputValidationError, match="No input files"):
        load_instance([])
