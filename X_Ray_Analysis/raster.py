import io
import logging
import os

import cv2
import numpy as np
import pydicom
from pydicom.errors import InvalidDicomError

logger = logging.getLogger(__name__)

DICOM_EXTENSIONS = {'.dcm', '.dicom'}


class DecodeFailure(ValueError):
    """Raised when the source cannot be read as a raster image."""


class RasterImage:
    """
    Read-only RGB pixel grid for one uploaded scan.

    `brightness` is the per-pixel integer mean of the three channels, the
    quantity every sampler statistic is computed from.
    """

    def __init__(self, pixels):
        pixels = np.asarray(pixels)
        if pixels.ndim == 2:
            pixels = np.stack([pixels] * 3, axis=-1)
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"Expected an HxWx3 RGB array, got shape {pixels.shape}")
        if pixels.dtype != np.uint8:
            pixels = np.clip(pixels, 0, 255).astype(np.uint8)

        self._pixels = np.array(pixels, copy=True)
        self._pixels.setflags(write=False)

        brightness = self._pixels.astype(np.int16).sum(axis=2) // 3
        self._brightness = brightness.astype(np.int16)
        self._brightness.setflags(write=False)

    @property
    def pixels(self):
        return self._pixels

    @property
    def brightness(self):
        return self._brightness

    @property
    def height(self):
        return self._pixels.shape[0]

    @property
    def width(self):
        return self._pixels.shape[1]

    @property
    def aspect_ratio(self):
        return self.width / self.height if self.height else 0.0

    def __repr__(self):
        return f"RasterImage({self.width}x{self.height})"


def _to_8bit(image):
    # Normalize 16-bit / signed data into the 8-bit range
    if image.dtype == np.uint8:
        return image
    image = image.astype(np.float32)
    image -= image.min()
    peak = image.max()
    if peak > 0:
        image = image / peak * 255
    return image.astype(np.uint8)


def _dicom_to_rgb(dataset):
    image = dataset.pixel_array
    frames = int(getattr(dataset, 'NumberOfFrames', 1) or 1)
    if frames > 1:
        logger.info("Multi-frame DICOM (%d frames), using the first", frames)
        image = image[0]

    if image.ndim == 3 and image.shape[-1] == 3:
        return _to_8bit(image)
    if image.ndim != 2:
        raise DecodeFailure(f"Unsupported DICOM pixel layout {image.shape}")

    image = _to_8bit(image)
    if getattr(dataset, 'PhotometricInterpretation', '') == 'MONOCHROME1':
        image = 255 - image

    return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)


def _read_dicom(source):
    try:
        if isinstance(source, (bytes, bytearray)):
            dataset = pydicom.dcmread(io.BytesIO(source))
        else:
            dataset = pydicom.dcmread(source)
        return _dicom_to_rgb(dataset)
    except (InvalidDicomError, AttributeError, RuntimeError, ValueError, OSError, cv2.error) as exc:
        raise DecodeFailure(f"Unreadable DICOM data: {exc}") from exc


def _looks_like_dicom(data):
    # DICOM part 10 files carry "DICM" after a 128 byte preamble
    return len(data) > 132 and data[128:132] == b'DICM'


def decode_image(source):
    """
    Decode a path or raw bytes into a RasterImage.

    PNG/JPEG/BMP go through OpenCV; DICOM goes through pydicom.
    """
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
        if not data:
            raise DecodeFailure("Empty image data")
        if _looks_like_dicom(data):
            return RasterImage(_read_dicom(data))
        bgr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_COLOR)
        if bgr is None:
            raise DecodeFailure("Image data could not be decoded")
        return RasterImage(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))

    path = os.fspath(source)
    if not os.path.isfile(path):
        raise DecodeFailure(f"Image not found: {path}")

    ext = os.path.splitext(path)[1].lower()
    if ext in DICOM_EXTENSIONS:
        return RasterImage(_read_dicom(path))

    bgr = cv2.imread(path, cv2.IMREAD_COLOR)
    if bgr is None:
        raise DecodeFailure(f"Failed to read image: {path}")

    image = RasterImage(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))
    logger.debug("Decoded %s as %s", path, image)
    return image
