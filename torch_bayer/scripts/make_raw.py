import argparse
from pathlib import Path
import sys

import torch_bayer as tb
from torch_bayer.bayer import BayerPattern


def make_raw(image_path: Path, output_path: Path, pattern: BayerPattern) -> tb.MosaicBuffer:
  """Sample an RGB image through a Bayer filter and write the 8-bit raw mosaic."""
  print(f'Loading image: {image_path}')
  rgb = tb.load_image(image_path)
  mosaic = tb.MosaicBuffer(tb.rgb_to_bayer(rgb, pattern))

  tb.write_raw(mosaic, output_path)
  print(f'Image size: {mosaic.width}x{mosaic.height}, pattern: {pattern.name}')
  print(f'Wrote {mosaic.width * mosaic.height} bytes to: {output_path}')
  print(f'Convert with: convert_raw {mosaic.width} {mosaic.height} {pattern.name} {output_path}')
  return mosaic


def main(argv: list[str] | None = None) -> int:
  parser = argparse.ArgumentParser(description='Create an 8-bit Bayer raw file from an RGB image')
  parser.add_argument('image', type=Path, help='Input image path')
  parser.add_argument('output', type=Path, help='Output raw file path')
  parser.add_argument(
    '--pattern',
    type=str,
    default=BayerPattern.RGGB.name,
    choices=tb.bayer.pattern_names(),
    help='Bayer pattern (default: RGGB)',
  )
  args = parser.parse_args(argv)

  try:
    make_raw(args.image, args.output, BayerPattern[args.pattern])
  except OSError as e:
    print(f'Error: {e}', file=sys.stderr)
    return 1

  return 0


if __name__ == '__main__':
  sys.exit(main())
