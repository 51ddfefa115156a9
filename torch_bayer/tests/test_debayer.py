"""Test bilinear demosaicing rules, border handling and execution modes."""

import pytest
import torch

from torch_bayer import BayerPattern, Color, ConfigError, Demosaicer, MosaicBuffer, PatternRule, demosaic, rgb_to_bayer


def mosaic_of(rows: list[list[int]]) -> MosaicBuffer:
  return MosaicBuffer(torch.tensor(rows, dtype=torch.uint8))


def random_mosaic(width: int, height: int, seed: int = 0) -> MosaicBuffer:
  generator = torch.Generator().manual_seed(seed)
  return MosaicBuffer(torch.randint(0, 256, (height, width), dtype=torch.uint8, generator=generator))


def border_mask(width: int, height: int) -> torch.Tensor:
  mask = torch.ones((height, width), dtype=torch.bool)
  mask[1:-1, 1:-1] = False
  return mask


# RGGB 5x5 reference, interior (x, y) -> (r, g, b)
STRIPES_5X5 = [
  [10, 20, 10, 20, 10],
  [30, 40, 30, 40, 30],
  [10, 20, 10, 20, 10],
  [30, 40, 30, 40, 30],
  [10, 20, 10, 20, 10],
]

STRIPES_5X5_EXPECTED = {
  (1, 1): (10, 25, 40),
  (2, 1): (10, 30, 40),
  (3, 1): (10, 25, 40),
  (1, 2): (10, 20, 40),
  (2, 2): (10, 25, 40),
  (3, 2): (10, 20, 40),
  (1, 3): (10, 25, 40),
  (2, 3): (10, 30, 40),
  (3, 3): (10, 25, 40),
}


def test_uniform_3x3():
  """A uniform 3x3 mosaic gives one uniform interior pixel and a zero border."""
  rgb = demosaic(mosaic_of([[100] * 3] * 3), BayerPattern.RGGB)

  assert rgb.pixel(1, 1) == (100, 100, 100)
  for y in range(3):
    for x in range(3):
      if (x, y) != (1, 1):
        assert rgb.pixel(x, y) == (0, 0, 0)


@pytest.mark.parametrize('reference', [False, True])
def test_stripes_5x5_reference_table(reference):
  """Both execution paths reproduce the hand-computed 5x5 table bit-exactly."""
  demosaicer = Demosaicer(BayerPattern.RGGB)
  mosaic = mosaic_of(STRIPES_5X5)
  rgb = demosaicer.scan(mosaic) if reference else demosaicer.process(mosaic)

  for (x, y), expected in STRIPES_5X5_EXPECTED.items():
    assert rgb.pixel(x, y) == expected, f'pixel ({x}, {y})'
  assert not rgb.pixels[border_mask(5, 5)].any()


def test_two_neighbour_mean_truncates():
  """Means of [10, 11] and [7, 8] give 10 and 7."""
  # GRBG centre (1, 1) is green on a blue row: blue from left/right, red from up/down
  mosaic = mosaic_of([
    [0, 7, 0],
    [10, 50, 11],
    [0, 8, 0],
  ])
  assert demosaic(mosaic, BayerPattern.GRBG).pixel(1, 1) == (7, 50, 10)


def test_four_neighbour_mean_truncates():
  """Means of four samples are truncated, 5 / 4 -> 1 and 3 / 4 -> 0."""
  # RGGB centre (1, 1) is blue
  mosaic = mosaic_of([
    [0, 1, 0],
    [1, 9, 2],
    [0, 1, 3],
  ])
  assert demosaic(mosaic, BayerPattern.RGGB).pixel(1, 1) == (0, 1, 9)


def test_sums_do_not_overflow():
  """Saturated neighbourhoods average to 255."""
  mosaic = mosaic_of([[255] * 4] * 4)
  for pattern in BayerPattern:
    rgb = demosaic(mosaic, pattern)
    assert (rgb.pixels[1:-1, 1:-1] == 255).all()


@pytest.mark.parametrize('pattern', list(BayerPattern))
def test_native_channel_is_raw_sample(pattern):
  """The sampled channel of every interior pixel passes through unchanged."""
  mosaic = random_mosaic(11, 9, seed=1)
  rgb = demosaic(mosaic, pattern)
  rule = PatternRule(pattern)

  for y in range(1, 8):
    for x in range(1, 10):
      assert rgb.pixel(x, y)[rule.color_at(x, y)] == mosaic[y, x]


@pytest.mark.parametrize('pattern', list(BayerPattern))
def test_border_is_zero(pattern):
  mosaic = random_mosaic(8, 6, seed=2)
  rgb = demosaic(mosaic, pattern)

  assert (rgb.width, rgb.height) == (8, 6)
  assert not rgb.pixels[border_mask(8, 6)].any()


@pytest.mark.parametrize('size', [(2, 2), (2, 5), (5, 2), (1, 1), (1, 7)])
def test_degenerate_sizes(size):
  """Images without interior pixels demosaic to an all-zero buffer."""
  width, height = size
  mosaic = random_mosaic(width, height)
  demosaicer = Demosaicer(BayerPattern.BGGR, band_rows=1, workers=2)

  for rgb in (demosaicer.process(mosaic), demosaicer.scan(mosaic)):
    assert (rgb.width, rgb.height) == size
    assert not rgb.pixels.any()


@pytest.mark.parametrize('pattern', list(BayerPattern))
@pytest.mark.parametrize('band_rows, workers', [(0, 1), (1, 1), (3, 4), (4, 2), (100, 3)])
def test_process_matches_scan(pattern, band_rows, workers):
  """Banded and threaded processing is bit-identical to the per-pixel scan."""
  mosaic = random_mosaic(13, 10, seed=3)
  demosaicer = Demosaicer(pattern, band_rows=band_rows, workers=workers)

  assert demosaicer.process(mosaic) == demosaicer.scan(mosaic)


@pytest.mark.parametrize('pattern', list(BayerPattern))
def test_reconstruct_matches_scan(pattern):
  mosaic = random_mosaic(6, 7, seed=4)
  rgb = Demosaicer(pattern).scan(mosaic)
  rule = PatternRule(pattern)

  assert rule.reconstruct(mosaic, 2, 3) == rgb.pixel(2, 3)
  assert rule.reconstruct(mosaic, 4, 5) == rgb.pixel(4, 5)


@pytest.mark.parametrize('pattern', list(BayerPattern))
def test_constant_color_is_recovered(pattern):
  """Mosaicing a flat colour and demosaicing it gives the colour back on the interior."""
  color = torch.tensor([200, 120, 40], dtype=torch.uint8)
  rgb_in = color.expand(6, 9, 3).contiguous()
  rgb = demosaic(MosaicBuffer(rgb_to_bayer(rgb_in, pattern)), pattern)

  assert (rgb.pixels[1:-1, 1:-1] == color).all()


def test_bands_cover_interior():
  assert Demosaicer(BayerPattern.RGGB).bands(10) == [(1, 9)]
  assert Demosaicer(BayerPattern.RGGB, band_rows=3).bands(10) == [(1, 4), (4, 7), (7, 9)]
  assert Demosaicer(BayerPattern.RGGB, band_rows=3).bands(2) == []


def test_demosaicer_rejects_bad_options():
  with pytest.raises(ConfigError):
    Demosaicer(BayerPattern.RGGB, band_rows=-1)
  with pytest.raises(ConfigError):
    Demosaicer(BayerPattern.RGGB, workers=0)


def test_demosaicer_is_stateless():
  """Repeated calls on the same input give identical results and leave the input untouched."""
  mosaic = random_mosaic(7, 7, seed=5)
  before = mosaic.samples.clone()
  demosaicer = Demosaicer(BayerPattern.GBRG)

  assert demosaicer.process(mosaic) == demosaicer.process(mosaic)
  assert torch.equal(mosaic.samples, before)


def test_color_at():
  rule = PatternRule(BayerPattern.GBRG)
  assert [rule.color_at(x, 0) for x in range(4)] == [Color.G, Color.B, Color.G, Color.B]
  assert [rule.color_at(x, 1) for x in range(4)] == [Color.R, Color.G, Color.R, Color.G]


def test_repr():
  assert repr(Demosaicer(BayerPattern.GRBG, band_rows=8, workers=2)) == 'Demosaicer(GRBG, band_rows=8, workers=2)'


def test_pattern_given_by_name():
  """Pattern names are looked up like the command line does; unknown names are configuration errors."""
  mosaic = random_mosaic(6, 5, seed=3)
  assert Demosaicer('BGGR').process(mosaic) == Demosaicer(BayerPattern.BGGR).process(mosaic)
  assert PatternRule('GRBG').pattern is BayerPattern.GRBG

  for name in ['rggb', 'XYZZ', '']:
    with pytest.raises(ConfigError, match='Invalid Bayer pattern'):
      Demosaicer(name)
    with pytest.raises(ConfigError):
      demosaic(mosaic, name)
