"""Tests for YAML configuration of heterogeneity libraries."""

import pytest
import yaml

from strata_sem.models import (
    ConfigManager,
    HeterogeneityConfigError,
    ReferenceType,
    load_library,
    parse_record,
)


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data))
    return path


@pytest.fixture
def model_file(tmp_path):
    return write_yaml(
        tmp_path / "model.yaml",
        {
            "r_outer": 6371.0,
            "flattening": 0.0,
            "output": {"compression": "gzip", "level": 4},
            "heterogeneity": [
                {"model": "bubble", "params": [100, 0, 0, 50, 20, 0.05, 0]},
                "bubble$300$45$90$0$40$-0.02$1$0$1$1",
            ],
        },
    )


# =============================================================================
# Records
# =============================================================================


class TestParseRecord:
    def test_mapping(self):
        assert parse_record({"model": "bubble", "params": [1, 2, 3]}) == ("bubble", [1.0, 2.0, 3.0])

    def test_compact_string(self):
        name, params = parse_record("bubble$100$0$0$50$20$0.05$0")
        assert name == "bubble"
        assert params == [100.0, 0.0, 0.0, 50.0, 20.0, 0.05, 0.0]

    def test_compact_string_trailing_separator(self):
        assert parse_record("bubble$1$2$")[1] == [1.0, 2.0]

    def test_compact_string_bad_number(self):
        with pytest.raises(HeterogeneityConfigError, match="Invalid number"):
            parse_record("bubble$1$two")

    def test_compact_string_interior_empty_field(self):
        """An empty interior field would shift later values, so it is rejected."""
        with pytest.raises(HeterogeneityConfigError, match="position 2"):
            parse_record("bubble$100$0$$0$50$20$0.05$0$1")

    def test_compact_string_only_one_trailing_separator(self):
        with pytest.raises(HeterogeneityConfigError, match="position 2"):
            parse_record("bubble$1$2$$")

    def test_mapping_non_numeric_param(self):
        with pytest.raises(HeterogeneityConfigError, match="Invalid number"):
            parse_record({"model": "bubble", "params": [100, None, 0]})

    def test_missing_model(self):
        with pytest.raises(HeterogeneityConfigError, match="missing 'model'"):
            parse_record({"params": [1]})

    def test_params_not_a_list(self):
        with pytest.raises(HeterogeneityConfigError, match="list of numbers"):
            parse_record({"model": "bubble", "params": "1 2 3"})

    def test_unsupported(self):
        with pytest.raises(HeterogeneityConfigError, match="Unsupported"):
            parse_record(42)


# =============================================================================
# ConfigManager
# =============================================================================


class TestConfigManager:
    def test_load(self, model_file):
        config = ConfigManager([model_file])
        assert config.r_outer == 6371e3
        assert config.flattening == 0.0
        assert config.get("output.compression") == "gzip"
        assert config.get("output.missing", "fallback") == "fallback"
        assert config.sources == [str(model_file)]

    def test_defaults(self):
        config = ConfigManager()
        assert config.r_outer == 6371e3
        assert config.flattening == 0.0
        assert config.records() == []
        assert len(config.build_library()) == 0

    def test_deep_merge(self, model_file, tmp_path):
        """Later files override scalars and merge nested mappings."""
        override = write_yaml(
            tmp_path / "override.yaml", {"r_outer": 3390.0, "output": {"level": 9}}
        )
        config = ConfigManager([model_file, override])
        assert config.r_outer == 3390e3
        assert config.get("output.level") == 9
        assert config.get("output.compression") == "gzip"
        assert len(config.records()) == 2

    def test_heterogeneity_list_replaced(self, model_file, tmp_path):
        override = write_yaml(
            tmp_path / "override.yaml",
            {"heterogeneity": ["bubble$10$0$0$5$5$0.1$3"]},
        )
        library = ConfigManager([model_file, override]).build_library()
        assert len(library) == 1
        assert library[0].reference_type == ReferenceType.REFERENCE_3D

    def test_inline_data(self):
        config = ConfigManager(data={"heterogeneity": [{"model": "bubble", "params": [1] * 7}]})
        assert len(config.build_library()) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ConfigManager([tmp_path / "nope.yaml"])

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(HeterogeneityConfigError, match="mapping"):
            ConfigManager([path])

    def test_heterogeneity_must_be_list(self, tmp_path):
        path = write_yaml(tmp_path / "bad.yaml", {"heterogeneity": {"model": "bubble"}})
        with pytest.raises(HeterogeneityConfigError, match="list of records"):
            ConfigManager([path]).records()

    def test_build_library_applies_geometry(self, model_file, tmp_path):
        override = write_yaml(tmp_path / "mars.yaml", {"r_outer": 3390.0, "flattening": 0.005})
        library = ConfigManager([model_file, override]).build_library()
        assert all(source.r_outer == 3390e3 for source in library)
        assert all(source.flattening == 0.005 for source in library)

    @pytest.mark.parametrize(
        "data,match",
        [
            ({"flattening": None}, "'flattening' must be a number"),
            ({"flattening": "flat"}, "'flattening' must be a number"),
            ({"r_outer": None}, "'r_outer' must be a number"),
            ({"r_outer": [6371]}, "'r_outer' must be a number"),
            ({"r_outer": -1.0}, "'r_outer' must be positive"),
        ],
    )
    def test_bad_geometry_values(self, data, match):
        config = ConfigManager(data={**data, "heterogeneity": []})
        with pytest.raises(HeterogeneityConfigError, match=match):
            config.build_library()

    def test_non_numeric_bubble_param_in_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(
            "heterogeneity:\n  - model: bubble\n    params: [100, 0, 0, 50, 20, high, 0]\n"
        )
        with pytest.raises(HeterogeneityConfigError, match="Invalid number"):
            load_library(path)

    def test_inline_data_must_be_mapping(self):
        with pytest.raises(HeterogeneityConfigError, match="inline data must be a mapping"):
            ConfigManager(data=[("r_outer", 6371.0)])


def test_load_library(model_file):
    library = load_library(model_file)
    assert len(library) == 2
    second = library[1]
    assert second.depth == 300e3
    assert second.reference_type == ReferenceType.REFERENCE_1D
    assert (second.affects_vp, second.affects_vs, second.affects_rho) == (False, True, True)
