"""Mosaic (single channel) and RGB image buffers."""

from dataclasses import dataclass

from beartype import beartype
import torch

from .errors import ConfigError


@beartype
def check_geometry(width: int, height: int) -> None:
  if width <= 0 or height <= 0:
    raise ConfigError(f'Width and height must be positive integers, got {width}x{height}')


@beartype
@dataclass(frozen=True, eq=False)
class MosaicBuffer:
  """Raw 8-bit Bayer samples, shape (height, width), row-major.

  The buffer is populated once and treated as read-only afterwards.
  """

  samples: torch.Tensor

  def __post_init__(self):
    if self.samples.dim() != 2:
      raise ValueError(f'Mosaic samples must be 2D (H, W), got shape {tuple(self.samples.shape)}')
    if self.samples.dtype != torch.uint8:
      raise ValueError(f'Mosaic samples must be uint8, got {self.samples.dtype}')
    check_geometry(self.width, self.height)

  @classmethod
  def from_bytes(
    cls, data: bytes | bytearray | memoryview, width: int, height: int, device: torch.device = torch.device('cpu')
  ) -> 'MosaicBuffer':
    """Build a mosaic from exactly width * height row-major bytes."""
    check_geometry(width, height)
    if len(data) != width * height:
      raise ValueError(f'Expected {width * height} bytes for a {width}x{height} mosaic, got {len(data)}')

    # copy into a writable buffer, torch.frombuffer warns on read-only memory
    samples = torch.frombuffer(bytearray(data), dtype=torch.uint8).view(height, width)
    return cls(samples.to(device))

  @property
  def width(self) -> int:
    return self.samples.shape[1]

  @property
  def height(self) -> int:
    return self.samples.shape[0]

  @property
  def device(self) -> torch.device:
    return self.samples.device

  def __getitem__(self, yx: tuple[int, int]) -> int:
    y, x = yx
    return int(self.samples[y, x])

  def __repr__(self) -> str:
    return f'MosaicBuffer({self.width}x{self.height}, device={self.device})'


@beartype
@dataclass(frozen=True)
class RGBBuffer:
  """Interleaved 8-bit RGB pixels, shape (height, width, 3), row-major."""

  pixels: torch.Tensor

  def __post_init__(self):
    if self.pixels.dim() != 3 or self.pixels.shape[2] != 3:
      raise ValueError(f'RGB pixels must have shape (H, W, 3), got {tuple(self.pixels.shape)}')
    if self.pixels.dtype != torch.uint8:
      raise ValueError(f'RGB pixels must be uint8, got {self.pixels.dtype}')

  @classmethod
  def zeros(cls, width: int, height: int, device: torch.device = torch.device('cpu')) -> 'RGBBuffer':
    check_geometry(width, height)
    return cls(torch.zeros((height, width, 3), dtype=torch.uint8, device=device))

  @property
  def width(self) -> int:
    return self.pixels.shape[1]

  @property
  def height(self) -> int:
    return self.pixels.shape[0]

  def pixel(self, x: int, y: int) -> tuple[int, int, int]:
    r, g, b = self.pixels[y, x].tolist()
    return (r, g, b)

  def to_bytes(self) -> bytes:
    """Row-major, channel-interleaved (R, G, B) payload of width * height * 3 bytes."""
    return self.pixels.contiguous().cpu().numpy().tobytes()

  def __eq__(self, other: object) -> bool:
    if not isinstance(other, RGBBuffer):
      return False
    return self.pixels.shape == other.pixels.shape and torch.equal(self.pixels.cpu(), other.pixels.cpu())

  def __repr__(self) -> str:
    return f'RGBBuffer({self.width}x{self.height}, device={self.pixels.device})'


__all__ = ['MosaicBuffer', 'RGBBuffer', 'check_geometry']
