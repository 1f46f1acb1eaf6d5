import numpy as np
import pytest
from pydicom.dataset import FileDataset, FileMetaDataset
from pydicom.uid import ExplicitVRLittleEndian, SecondaryCaptureImageStorage, generate_uid

from dicom_heatmap import config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (config.ENV_OPACITY, config.ENV_COLORMAP, config.ENV_NORMALIZATION,
                 config.ENV_THRESHOLD, config.ENV_DEMO_SIZE):
        monkeypatch.delenv(name, raising=False)


def write_dicom(path, pixels, photometric=None, bits_stored=None, frames=None):
    """
    Write a minimal uncompressed Secondary Capture file holding `pixels`.

    With `frames` set, `pixels` is [frames, H, W] grayscale data.
    """
    pixels = np.ascontiguousarray(pixels)
    meta = FileMetaDataset()
    meta.MediaStorageSOPClassUID = SecondaryCaptureImageStorage
    meta.MediaStorageSOPInstanceUID = generate_uid()
    meta.TransferSyntaxUID = ExplicitVRLittleEndian

    ds = FileDataset(str(path), {}, file_meta=meta, preamble=b"\0" * 128)
    ds.SOPClassUID = meta.MediaStorageSOPClassUID
    ds.SOPInstanceUID = meta.MediaStorageSOPInstanceUID
    ds.Modality = "OT"
    if frames:
        ds.NumberOfFrames = frames
        ds.Rows, ds.Columns = pixels.shape[1:3]
    else:
        ds.Rows, ds.Columns = pixels.shape[:2]

    if pixels.ndim == 3 and not frames:
        ds.SamplesPerPixel = 3
        ds.PlanarConfiguration = 0
        ds.PhotometricInterpretation = photometric or "RGB"
    else:
        ds.SamplesPerPixel = 1
        ds.PhotometricInterpretation = photometric or "MONOCHROME2"

    ds.BitsAllocated = pixels.dtype.itemsize * 8
    ds.BitsStored = bits_stored or ds.BitsAllocated
    ds.HighBit = ds.BitsStored - 1
    ds.PixelRepresentation = 0
    ds.PixelData = pixels.tobytes()
    ds.save_as(str(path), enforce_file_format=True)
    return path


@pytest.fixture
def dicom_file(tmp_path):
    def _make(name="scan.dcm", pixels=None, **kwargs):
        if pixels is None:
            pixels = np.arange(16, dtype=np.uint16).reshape(4, 4) * 100
        return write_dicom(tmp_path / name, pixels, **kwargs)
    return _make
