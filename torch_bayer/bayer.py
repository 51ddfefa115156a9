from enum import Enum, IntEnum

from beartype import beartype
import torch

from .errors import ConfigError


class Color(IntEnum):
  R = 0
  G = 1
  B = 2


class BayerPattern(Enum):
  RGGB = 0
  BGGR = 1
  GRBG = 2
  GBRG = 3


# (y % 2, x % 2) of the four cells of a 2x2 tile, in the order used by channels()
TILE_CELLS = ((0, 0), (0, 1), (1, 0), (1, 1))


def channels(pattern: BayerPattern) -> tuple[Color, Color, Color, Color]:
  """Colour of each tile cell, ordered as TILE_CELLS."""
  match pattern:
    case BayerPattern.RGGB:
      return (Color.R, Color.G, Color.G, Color.B)
    case BayerPattern.BGGR:
      return (Color.B, Color.G, Color.G, Color.R)
    case BayerPattern.GRBG:
      return (Color.G, Color.R, Color.B, Color.G)
    case BayerPattern.GBRG:
      return (Color.G, Color.B, Color.R, Color.G)

  raise ValueError(f'Invalid bayer pattern: {pattern}')


def horizontal_colors(pattern: BayerPattern) -> tuple[Color, Color]:
  """Colour a green cell takes from its left/right neighbours, for (even row, odd row).

  The other non-green colour of that cell comes from its up/down neighbours.
  """
  match pattern:
    case BayerPattern.RGGB:
      return (Color.R, Color.B)
    case BayerPattern.BGGR:
      return (Color.B, Color.R)
    case BayerPattern.GRBG:
      return (Color.R, Color.B)
    case BayerPattern.GBRG:
      return (Color.B, Color.R)

  raise ValueError(f'Invalid bayer pattern: {pattern}')


def pattern_names() -> list[str]:
  return [p.name for p in BayerPattern]


@beartype
def pattern_from_name(name: str) -> BayerPattern:
  """Look up a Bayer pattern by its exact (case-sensitive) name."""
  if name not in BayerPattern.__members__:
    raise ConfigError(f'Invalid Bayer pattern: {name!r}. Valid patterns: {", ".join(pattern_names())}')
  return BayerPattern[name]


@beartype
def rgb_to_bayer(rgb_tensor: torch.Tensor, pattern: BayerPattern = BayerPattern.RGGB) -> torch.Tensor:
  """Sample an RGB image through a Bayer colour filter.

  Args:
      rgb_tensor: RGB tensor of shape (H, W, 3)
      pattern: Bayer pattern

  Returns:
      Bayer tensor of shape (H, W), same dtype and device as the input
  """
  if rgb_tensor.dim() != 3 or rgb_tensor.shape[2] != 3:
    raise ValueError(f'Expected an (H, W, 3) tensor, got shape {tuple(rgb_tensor.shape)}')

  bayer = torch.zeros(rgb_tensor.shape[:2], dtype=rgb_tensor.dtype, device=rgb_tensor.device)
  for (dy, dx), color in zip(TILE_CELLS, channels(pattern)):
    bayer[dy::2, dx::2] = rgb_tensor[dy::2, dx::2, int(color)]
  return bayer


__all__ = [
  'TILE_CELLS',
  'BayerPattern',
  'Color',
  'channels',
  'horizontal_colors',
  'pattern_from_name',
  'pattern_names',
  'rgb_to_bayer',
]
