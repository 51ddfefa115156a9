"""Bilinear (neighbourhood average) demosaicing of 8-bit Bayer mosaics.

Every interior pixel is rebuilt from its 3x3 neighbourhood:

- red/blue cells keep their sample, green is the mean of the four orthogonal
  neighbours and the opposite colour the mean of the four diagonal neighbours
- green cells keep their sample, the two other colours are the mean of either
  the left/right or the up/down pair, depending on the pattern and row parity

Means are integer divisions truncated toward zero. The one pixel wide border
is not reconstructed and stays zero.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from beartype import beartype
import torch

from .bayer import BayerPattern, Color, channels, horizontal_colors, pattern_from_name
from .buffers import MosaicBuffer, RGBBuffer
from .errors import ConfigError

Window = Sequence[Sequence[int]]


def _opposite(color: Color) -> Color:
  return Color.B if color == Color.R else Color.R


# 3x3 window geometry, window[row][col] with the centre at [1][1]
def _cross_mean(w: Window) -> int:
  return (w[0][1] + w[2][1] + w[1][0] + w[1][2]) // 4


def _diagonal_mean(w: Window) -> int:
  return (w[0][0] + w[0][2] + w[2][0] + w[2][2]) // 4


def _horizontal_mean(w: Window) -> int:
  return (w[1][0] + w[1][2]) // 2


def _vertical_mean(w: Window) -> int:
  return (w[0][1] + w[2][1]) // 2


def _mean(total: torch.Tensor, count: int) -> torch.Tensor:
  return torch.div(total, count, rounding_mode='trunc')


class PatternRule:
  """Pixel reconstruction rule for one Bayer pattern, driven by its parity tables."""

  @beartype
  def __init__(self, pattern: BayerPattern | str):
    if isinstance(pattern, str):
      pattern = pattern_from_name(pattern)
    self.pattern = pattern
    self._cells = channels(pattern)
    self._horizontal = horizontal_colors(pattern)

  def color_at(self, x: int, y: int) -> Color:
    """Native colour sampled at (x, y)."""
    return self._cells[(y % 2) * 2 + (x % 2)]

  def reconstruct_window(self, window: Window, x: int, y: int) -> tuple[int, int, int]:
    """Reconstruct (r, g, b) at (x, y) from the 3x3 window of samples centred on it."""
    native = self.color_at(x, y)
    rgb = [0, 0, 0]
    rgb[native] = window[1][1]

    if native == Color.G:
      across = self._horizontal[y % 2]
      rgb[across] = _horizontal_mean(window)
      rgb[_opposite(across)] = _vertical_mean(window)
    else:
      rgb[Color.G] = _cross_mean(window)
      rgb[_opposite(native)] = _diagonal_mean(window)

    return (rgb[0], rgb[1], rgb[2])

  @beartype
  def reconstruct(self, mosaic: MosaicBuffer, x: int, y: int) -> tuple[int, int, int]:
    """Reconstruct (r, g, b) for an interior pixel, 1 <= x <= width - 2 and 1 <= y <= height - 2."""
    assert 1 <= x <= mosaic.width - 2 and 1 <= y <= mosaic.height - 2, f'({x}, {y}) is not an interior pixel'
    window = mosaic.samples[y - 1 : y + 2, x - 1 : x + 2].tolist()
    return self.reconstruct_window(window, x, y)

  def color_map(self, y0: int, y1: int, width: int, device: torch.device) -> torch.Tensor:
    """Native colour of the interior columns of rows [y0, y1), shape (y1 - y0, width - 2)."""
    cells = torch.tensor([int(c) for c in self._cells], device=device).view(2, 2)
    ys = torch.arange(y0, y1, device=device) % 2
    xs = torch.arange(1, width - 1, device=device) % 2
    return cells[ys[:, None], xs[None, :]]

  def interpolate_rows(self, samples: torch.Tensor, y0: int, y1: int) -> torch.Tensor:
    """Reconstruct the interior pixels of rows [y0, y1) in one pass.

    Reads only rows y0 - 1 .. y1 of samples; 1 <= y0 < y1 <= height - 1.

    Returns:
        uint8 tensor of shape (y1 - y0, width - 2, 3)
    """
    height, width = samples.shape
    assert 1 <= y0 < y1 <= height - 1, f'Invalid row range [{y0}, {y1}) for height {height}'

    window = samples[y0 - 1 : y1 + 1].to(torch.int32)
    centre = window[1:-1, 1:-1]
    up, down = window[:-2, 1:-1], window[2:, 1:-1]
    left, right = window[1:-1, :-2], window[1:-1, 2:]

    cross = _mean(up + down + left + right, 4)
    diagonal = _mean(window[:-2, :-2] + window[:-2, 2:] + window[2:, :-2] + window[2:, 2:], 4)
    horizontal = _mean(left + right, 2)
    vertical = _mean(up + down, 2)

    color = self.color_map(y0, y1, width, samples.device)
    across = torch.tensor([int(c) for c in self._horizontal], device=samples.device)
    across = across[torch.arange(y0, y1, device=samples.device) % 2][:, None]
    is_green = color == int(Color.G)

    planes = []
    for channel in Color:
      if channel == Color.G:
        interpolated = cross
      else:
        from_green = torch.where(across == int(channel), horizontal, vertical)
        interpolated = torch.where(is_green, from_green, diagonal)
      planes.append(torch.where(color == int(channel), centre, interpolated))

    return torch.stack(planes, dim=-1).to(torch.uint8)

  def __repr__(self) -> str:
    return f'PatternRule({self.pattern.name})'


class Demosaicer:
  """Applies a PatternRule to every interior pixel of a mosaic.

  Rows are processed in bands of band_rows rows (0 for a single band), on up to
  workers threads. Bands write disjoint row slices of the output, so the result
  does not depend on band size or worker count.
  """

  @beartype
  def __init__(self, bayer_pattern: BayerPattern | str, *, band_rows: int = 0, workers: int = 1):
    if band_rows < 0:
      raise ConfigError(f'band_rows must be >= 0, got {band_rows}')
    if workers < 1:
      raise ConfigError(f'workers must be >= 1, got {workers}')

    self.rule = PatternRule(bayer_pattern)
    self.band_rows = band_rows
    self.workers = workers

  @property
  def bayer_pattern(self) -> BayerPattern:
    return self.rule.pattern

  def bands(self, height: int) -> list[tuple[int, int]]:
    """Row ranges [y0, y1) covering the interior rows 1 .. height - 2."""
    if height < 3:
      return []
    step = self.band_rows if self.band_rows > 0 else height - 2
    return [(y0, min(y0 + step, height - 1)) for y0 in range(1, height - 1, step)]

  @beartype
  def process(self, mosaic: MosaicBuffer) -> RGBBuffer:
    rgb = RGBBuffer.zeros(mosaic.width, mosaic.height, device=mosaic.device)
    if mosaic.width < 3 or mosaic.height < 3:
      return rgb

    def fill(band: tuple[int, int]) -> None:
      y0, y1 = band
      rgb.pixels[y0:y1, 1:-1] = self.rule.interpolate_rows(mosaic.samples, y0, y1)

    bands = self.bands(mosaic.height)
    if self.workers > 1 and len(bands) > 1:
      with ThreadPoolExecutor(max_workers=self.workers) as executor:
        # consume the iterator so worker exceptions propagate
        list(executor.map(fill, bands))
    else:
      for band in bands:
        fill(band)

    return rgb

  @beartype
  def scan(self, mosaic: MosaicBuffer) -> RGBBuffer:
    """Reference row-major scan, one PatternRule call per interior pixel."""
    rgb = RGBBuffer.zeros(mosaic.width, mosaic.height, device=mosaic.device)
    rows = mosaic.samples.tolist()

    for y in range(1, mosaic.height - 1):
      line = []
      for x in range(1, mosaic.width - 1):
        window = [row[x - 1 : x + 2] for row in rows[y - 1 : y + 2]]
        line.append(self.rule.reconstruct_window(window, x, y))
      if line:
        rgb.pixels[y, 1:-1] = torch.tensor(line, dtype=torch.uint8, device=mosaic.device)

    return rgb

  def __repr__(self) -> str:
    return f'Demosaicer({self.bayer_pattern.name}, band_rows={self.band_rows}, workers={self.workers})'


@beartype
def demosaic(mosaic: MosaicBuffer, bayer_pattern: BayerPattern | str, *, band_rows: int = 0, workers: int = 1) -> RGBBuffer:
  """Demosaic a mosaic to an RGB buffer of the same size."""
  return Demosaicer(bayer_pattern, band_rows=band_rows, workers=workers).process(mosaic)


__all__ = ['Demosaicer', 'PatternRule', 'demosaic']
