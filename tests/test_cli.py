"""Tests for the command line interface."""
import pytest

from apexseg.cli import main, resolve_mode
from apexseg.types import QuantizeMode


class TestResolveMode:
    """Test mode name handling."""

    @pytest.mark.parametrize("value,expected", [
        (None, QuantizeMode.CONTINUOUS),
        ("continuous", QuantizeMode.CONTINUOUS),
        ("-c", QuantizeMode.CONTINUOUS),
        ("ITERATIVE", QuantizeMode.ITERATIVE),
        ("i", QuantizeMode.ITERATIVE),
    ])
    def test_known(self, value, expected):
        assert resolve_mode(value) is expected

    def test_unknown_falls_back(self, capsys):
        """Unknown names warn and use continuous mode."""
        assert resolve_mode("sideways") is QuantizeMode.CONTINUOUS
        assert "Unknown mode" in capsys.readouterr().err


class TestQuantizeCommand:
    """Test `apexseg quantize`."""

    def test_iterative(self, quadrant_png, tmp_path, capsys):
        output = tmp_path / "out.png"

        assert main(["quantize", "-i", "4", str(quadrant_png), str(output)]) == 0
        assert output.exists()
        out = capsys.readouterr().out
        assert "Mode: iterative" in out
        assert "Converged in 3 passes" in out

    def test_default_mode(self, quadrant_png, tmp_path, capsys):
        assert main(["quantize", "2", str(quadrant_png), str(tmp_path / "out.png")]) == 0
        assert "Mode: continuous" in capsys.readouterr().out

    def test_unknown_mode(self, quadrant_png, tmp_path, capsys):
        code = main(["quantize", "--mode", "zigzag", "2", str(quadrant_png), str(tmp_path / "o.png")])

        assert code == 0
        assert "using default (continuous)" in capsys.readouterr().err

    def test_unknown_mode_flag(self, quadrant_png, tmp_path, capsys):
        """An unrecognized mode flag warns and runs in continuous mode."""
        output = tmp_path / "o.png"
        code = main(["quantize", "-x", "4", str(quadrant_png), str(output)])

        assert code == 0
        assert output.exists()
        captured = capsys.readouterr()
        assert "Unknown mode '-x', using default (continuous)" in captured.err
        assert "Mode: continuous" in captured.out

    @pytest.mark.parametrize("extra", [
        ["-x", "-y"],
        ["-i", "-x"],
        ["surplus"],
    ])
    def test_unrecognized_arguments(self, quadrant_png, tmp_path, extra):
        """Only a single stray flag without another mode is read as a mode."""
        with pytest.raises(SystemExit) as excinfo:
            main(["quantize", "4", str(quadrant_png), str(tmp_path / "o.png"), *extra])
        assert excinfo.value.code == 2

    @pytest.mark.parametrize("count", ["256", "-1", "many"])
    def test_invalid_count(self, quadrant_png, tmp_path, count):
        """Counts outside 0-255 are usage errors."""
        with pytest.raises(SystemExit) as excinfo:
            main(["quantize", "-c", count, str(quadrant_png), str(tmp_path / "o.png")])
        assert excinfo.value.code == 2

    def test_zero_clusters(self, quadrant_png, tmp_path, capsys):
        """Zero passes the CLI range check but fails in the quantizer."""
        code = main(["quantize", "-c", "0", str(quadrant_png), str(tmp_path / "o.png")])

        assert code == 1
        assert "n_clusters must be >= 1" in capsys.readouterr().err

    def test_missing_arguments(self, quadrant_png):
        with pytest.raises(SystemExit) as excinfo:
            main(["quantize", "-c", "4", str(quadrant_png)])
        assert excinfo.value.code == 2

    def test_missing_input(self, tmp_path, capsys):
        code = main(["quantize", "4", str(tmp_path / "none.png"), str(tmp_path / "o.png")])

        assert code == 1
        assert "Input file not found" in capsys.readouterr().err


class TestSegmentCommand:
    """Test `apexseg segment`."""

    def test_segment(self, quadrant_png, tmp_path, capsys):
        output = tmp_path / "labels.png"

        assert main(["segment", str(quadrant_png), str(output), "--top", "2"]) == 0
        assert output.exists()
        out = capsys.readouterr().out
        assert "Regions: 4" in out
        assert out.count("256 px") == 2

    def test_segment_preprocess(self, quadrant_png, tmp_path):
        code = main([
            "-v", "segment", str(quadrant_png), str(tmp_path / "labels.png"),
            "--preprocess", "--threshold", "mean", "--kernel-size", "3",
        ])
        assert code == 0

    def test_bad_kernel(self, quadrant_png, tmp_path, capsys):
        code = main([
            "segment", str(quadrant_png), str(tmp_path / "labels.png"),
            "--preprocess", "--kernel-size", "0",
        ])

        assert code == 1
        assert "kernel_size" in capsys.readouterr().err

    def test_unknown_flag(self, quadrant_png, tmp_path):
        """Segment has no mode, so stray flags stay usage errors."""
        with pytest.raises(SystemExit) as excinfo:
            main(["segment", "-x", str(quadrant_png), str(tmp_path / "labels.png")])
        assert excinfo.value.code == 2
