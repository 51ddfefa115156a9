"""Raw Bayer readers and RGB image writers."""

import os
from pathlib import Path
import re
import stat
import warnings

from beartype import beartype
import numpy as np
from PIL import Image
import torch

from .buffers import MosaicBuffer, RGBBuffer, check_geometry
from .errors import ConfigError

_PPM_HEADER = re.compile(rb'P6\s+(\d+)\s+(\d+)\s+(\d+)\s')


@beartype
def load_raw_bytes(filepath: Path) -> bytes:
  """Load raw image bytes without any decoding"""
  try:
    with filepath.open('rb') as f:
      return f.read()
  except OSError as e:
    raise IOError(f'Cannot open file {filepath}: {e.strerror or e}') from e


@beartype
def mosaic_from_bytes(
  data: bytes | bytearray | memoryview,
  width: int,
  height: int,
  *,
  padding: int = 0,
  source: str = '<bytes>',
  device: torch.device = torch.device('cpu'),
) -> MosaicBuffer:
  """Build a mosaic from a byte source, skipping `padding` leading bytes.

  Trailing bytes beyond width * height are ignored with a warning.
  """
  check_geometry(width, height)
  if padding < 0:
    raise ConfigError(f'padding must be >= 0, got {padding}')
  expected = width * height
  available = len(data) - padding
  if available < expected:
    raise IOError(
      f'Failed to read image data from {source}: expected {expected} bytes for {width}x{height}, got {max(available, 0)}'
    )
  if available > expected:
    warnings.warn(f'{source}: ignoring {available - expected} trailing bytes after {width}x{height} image', stacklevel=2)

  return MosaicBuffer.from_bytes(data[padding : padding + expected], width, height, device=device)


def _trailing_bytes(f, consumed: int) -> int | None:
  """Bytes left after `consumed` for a regular file, None for pipes and devices."""
  info = os.fstat(f.fileno())
  return info.st_size - consumed if stat.S_ISREG(info.st_mode) else None


@beartype
def read_raw(
  filepath: Path, width: int, height: int, *, padding: int = 0, device: torch.device = torch.device('cpu')
) -> MosaicBuffer:
  """Read an 8-bit Bayer mosaic of the given size from a raw file.

  Only padding + width * height bytes (and one more to detect trailing data)
  are read, so large files and endless byte sources are handled.

  Args:
      filepath: Raw file holding width * height row-major samples
      width: Image width in pixels
      height: Image height in pixels
      padding: Number of header bytes to skip at the start of the file

  Returns:
      MosaicBuffer of shape (height, width)
  """
  check_geometry(width, height)
  if padding < 0:
    raise ConfigError(f'padding must be >= 0, got {padding}')
  expected = width * height

  try:
    with filepath.open('rb') as f:
      if f.seekable():
        f.seek(padding)
      else:
        f.read(padding)
      data = f.read(expected + 1)
      trailing = _trailing_bytes(f, padding + expected) if len(data) > expected else 0
  except OSError as e:
    raise IOError(f'Cannot open file {filepath}: {e.strerror or e}') from e

  if len(data) < expected:
    raise IOError(
      f'Failed to read image data from {filepath}: expected {expected} bytes for {width}x{height}, got {len(data)}'
    )
  if trailing != 0:
    count = 'unknown number of' if trailing is None else str(trailing)
    warnings.warn(f'{filepath}: ignoring {count} trailing bytes after {width}x{height} image', stacklevel=2)

  return MosaicBuffer.from_bytes(data[:expected], width, height, device=device)


@beartype
def write_raw(mosaic: MosaicBuffer, filepath: Path) -> None:
  try:
    filepath.write_bytes(mosaic.samples.contiguous().cpu().numpy().tobytes())
  except OSError as e:
    raise IOError(f'Cannot create output file {filepath}: {e.strerror or e}') from e


@beartype
def encode_ppm(rgb: RGBBuffer) -> bytes:
  """Binary PPM (P6, maxval 255) encoding of an RGB buffer."""
  header = f'P6\n{rgb.width} {rgb.height}\n255\n'.encode('ascii')
  return header + rgb.to_bytes()


@beartype
def write_ppm(rgb: RGBBuffer, filepath: Path) -> None:
  try:
    with filepath.open('wb') as f:
      f.write(encode_ppm(rgb))
  except OSError as e:
    raise IOError(f'Cannot create output file {filepath}: {e.strerror or e}') from e


@beartype
def decode_ppm(data: bytes, source: str = '<bytes>') -> RGBBuffer:
  match = _PPM_HEADER.match(data)
  if match is None:
    raise IOError(f'{source} is not a binary PPM (P6) image')

  width, height, maxval = (int(v) for v in match.groups())
  if maxval != 255:
    raise IOError(f'{source}: only 8-bit PPM images are supported, got maxval {maxval}')

  payload = data[match.end() :]
  expected = width * height * 3
  if len(payload) < expected:
    raise IOError(f'{source}: expected {expected} bytes of pixel data, got {len(payload)}')

  pixels = np.frombuffer(payload[:expected], dtype=np.uint8).reshape(height, width, 3)
  return RGBBuffer(torch.from_numpy(pixels.copy()))


@beartype
def read_ppm(filepath: Path) -> RGBBuffer:
  return decode_ppm(load_raw_bytes(filepath), source=str(filepath))


@beartype
def save_image(rgb: RGBBuffer, filepath: Path, quality: int = 95) -> None:
  """Save as PPM for a .ppm suffix, otherwise in the format Pillow picks from the suffix."""
  if filepath.suffix.lower() == '.ppm':
    write_ppm(rgb, filepath)
    return

  image = Image.fromarray(rgb.pixels.cpu().numpy())
  try:
    image.save(filepath, quality=quality)
  except (OSError, ValueError) as e:
    raise IOError(f'Cannot save image {filepath}: {e}') from e


@beartype
def load_image(image_path: Path) -> torch.Tensor:
  """Load an image as an 8-bit RGB tensor.

  Returns:
      uint8 tensor of shape (H, W, 3)
  """
  if not image_path.exists():
    raise FileNotFoundError(f'Image not found: {image_path}')

  image = Image.open(image_path).convert('RGB')
  return torch.from_numpy(np.array(image, dtype=np.uint8))


__all__ = [
  'decode_ppm',
  'encode_ppm',
  'load_image',
  'load_raw_bytes',
  'mosaic_from_bytes',
  'read_ppm',
  'read_raw',
  'save_image',
  'write_ppm',
  'write_raw',
]
