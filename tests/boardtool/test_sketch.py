"""Tests for sketch loading."""

import json

import pytest

from boardtool.primitives.errors import ConfigurationError
from boardtool.runtime.sketch import Sketch


class TestSketch:
    """Sketch.from_path()."""

    def test_from_folder(self, sketch_dir):
        """Name comes from the folder."""
        sketch = Sketch.from_path(sketch_dir)
        assert sketch.name == "Blink"
        assert sketch.full_path == sketch_dir.resolve()
        assert sketch.metadata_fqbn is None

    def test_from_main_file(self, sketch_dir):
        """The main file resolves to its folder."""
        assert Sketch.from_path(sketch_dir / "Blink.ino").name == "Blink"

    def test_missing_main_file(self, tmp_path):
        """A folder without <name>.ino is not a sketch."""
        folder = tmp_path / "Empty"
        folder.mkdir()
        with pytest.raises(ConfigurationError, match="missing Empty.ino"):
            Sketch.from_path(folder)

    def test_missing_folder(self, tmp_path):
        """Nonexistent paths are rejected."""
        with pytest.raises(ConfigurationError, match="no valid sketch"):
            Sketch.from_path(tmp_path / "nope")

    def test_metadata_fqbn(self, sketch_dir):
        """sketch.json provides the attached board."""
        (sketch_dir / "sketch.json").write_text(
            json.dumps({"cpu": {"fqbn": "arduino:samd:mkr1000", "port": "/dev/ttyACM0"}})
        )
        assert Sketch.from_path(sketch_dir).metadata_fqbn == "arduino:samd:mkr1000"

    def test_invalid_metadata(self, sketch_dir):
        """Unreadable metadata is a configuration error."""
        (sketch_dir / "sketch.json").write_text("{not json")
        with pytest.raises(ConfigurationError, match="invalid sketch metadata"):
            Sketch.from_path(sketch_dir)

    @pytest.mark.parametrize("content", ['["a"]', '{"cpu": "arduino:samd:mkr1000"}', '{"cpu": {"fqbn": 3}}'])
    def test_metadata_wrong_shape(self, sketch_dir, content):
        """Well-formed JSON of the wrong shape is a configuration error."""
        (sketch_dir / "sketch.json").write_text(content)
        with pytest.raises(ConfigurationError, match="invalid sketch metadata"):
            Sketch.from_path(sketch_dir)

    def test_metadata_null_cpu(self, sketch_dir):
        """A null cpu entry means no attached board."""
        (sketch_dir / "sketch.json").write_text('{"cpu": null}')
        assert Sketch.from_path(sketch_dir).metadata_fqbn is None
