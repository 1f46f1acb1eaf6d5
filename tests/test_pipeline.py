import json

import numpy as np
import pytest

from dicom_heatmap.config import OverlaySettings
from dicom_heatmap.heatmap_io import HeatmapFormatError
from dicom_heatmap.pipeline import convert, convert_directory, render_overlay

GRAY_FULL = OverlaySettings(opacity=1.0, colormap="grayscale")


def write_csv(path, rows):
    path.write_text("\n".join(",".join(str(v) for v in row) for row in rows), encoding="utf-8")
    return path


def test_heatmap_is_resized_to_the_image(tmp_path, dicom_file):
    dcm = dicom_file()
    heatmap = write_csv(tmp_path / "scan.csv", [[0, 1], [2, 3]])

    result = render_overlay(dcm, heatmap, GRAY_FULL)

    assert result.size == (4, 4)
    assert result.heatmap_shape == (2, 2)
    assert not result.used_synthetic_base
    assert not result.used_synthetic_heatmap
    red = result.rgba[..., 0]
    assert red.tolist() == [
        [0, 0, 85, 85],
        [0, 0, 85, 85],
        [170, 170, 255, 255],
        [170, 170, 255, 255],
    ]
    assert np.all(result.rgba[..., 3] == 255)


def test_zero_opacity_leaves_base_untouched(tmp_path, dicom_file):
    dcm = dicom_file(pixels=np.array([[0, 255], [255, 0]], dtype=np.uint8))
    heatmap = write_csv(tmp_path / "scan.csv", [[5, 1], [2, 3]])
    result = render_overlay(dcm, heatmap, OverlaySettings(opacity=0.0))
    assert result.rgba[..., 0].tolist() == [[0, 255], [255, 0]]


def test_threshold_blends_only_hot_cells(tmp_path, dicom_file):
    dcm = dicom_file(pixels=np.zeros((2, 2), dtype=np.uint8))
    heatmap = write_csv(tmp_path / "scan.csv", [[0, 1], [2, 4]])
    settings = OverlaySettings(opacity=1.0, colormap="grayscale", threshold=0.5)
    result = render_overlay(dcm, heatmap, settings)
    assert result.rgba[..., 0].tolist() == [[0, 0], [128, 255]]


def test_missing_heatmap_uses_synthetic_gradient(tmp_path, dicom_file, caplog):
    dcm = dicom_file()
    result = render_overlay(dcm, tmp_path / "nope.json", OverlaySettings())
    assert result.used_synthetic_heatmap
    assert result.heatmap_shape == (4, 4)
    assert "synthetic demo gradient" in caplog.text


def test_missing_dicom_uses_demo_image(tmp_path):
    settings = OverlaySettings(demo_width=32, demo_height=16)
    result = render_overlay(tmp_path / "nope.dcm", None, settings)
    assert result.used_synthetic_base
    assert result.used_synthetic_heatmap
    assert result.size == (32, 16)


def test_malformed_heatmap_is_not_replaced(tmp_path, dicom_file):
    dcm = dicom_file()
    heatmap = tmp_path / "scan.json"
    heatmap.write_text(json.dumps([[1, 2], [3]]), encoding="utf-8")
    with pytest.raises(HeatmapFormatError):
        render_overlay(dcm, heatmap, OverlaySettings())


def test_invalid_settings_rejected(dicom_file):
    with pytest.raises(ValueError):
        render_overlay(dicom_file(), None, OverlaySettings(opacity=2.0))


def test_convert_writes_png(tmp_path, dicom_file):
    out = tmp_path / "out" / "overlay.png"
    result = convert(dicom_file(), None, out)
    assert out.is_file()
    assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"
    assert result.size == (4, 4)


def test_convert_directory(tmp_path, dicom_file):
    dicoms = tmp_path / "dicoms"
    heatmaps = tmp_path / "heatmaps"
    dicoms.mkdir()
    heatmaps.mkdir()

    dicom_file("dicoms/a.dcm")
    dicom_file("dicoms/b.dcm")
    (dicoms / "c.dcm").write_bytes(b"garbage")
    (dicoms / "notes.txt").write_text("ignored", encoding="utf-8")
    write_csv(heatmaps / "a.csv", [[1, 2], [3, 4]])

    out_dir = tmp_path / "overlays"
    summary = convert_directory(dicoms, heatmaps, out_dir, OverlaySettings())

    assert [p.name for p in summary.written] == ["a_overlay.png", "b_overlay.png"]
    assert all(p.is_file() for p in summary.written)
    assert summary.synthetic_heatmaps == 1
    assert [p.name for p, _ in summary.failed] == ["c.dcm"]
    assert not summary.ok


def test_convert_directory_without_dicoms(tmp_path):
    with pytest.raises(FileNotFoundError):
        convert_directory(tmp_path, None, tmp_path / "out")


def test_convert_directory_continues_past_empty_npy(tmp_path, dicom_file):
    dicom_file("a.dcm")
    dicom_file("b.dcm")
    (tmp_path / "a.npy").write_bytes(b"")
    np.save(tmp_path / "b.npy", np.ones((2, 2)))

    summary = convert_directory(tmp_path, None, tmp_path / "out", OverlaySettings())

    assert [p.name for p in summary.written] == ["b_overlay.png"]
    assert [p.name for p, _ in summary.failed] == ["a.dcm"]
