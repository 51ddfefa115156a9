import argparse
from pathlib import Path
import sys
import time

import torch

import torch_bayer as tb
from torch_bayer.config import ConversionSettings


def print_image_info(settings: ConversionSettings) -> None:
  print(f'Image dimensions: {settings.width}x{settings.height}')
  print(f'Bayer pattern: {settings.bayer_pattern.name}')


def convert(
  settings: ConversionSettings,
  input_path: Path,
  output_path: Path,
  *,
  reference: bool = False,
  device: torch.device = torch.device('cpu'),
) -> tb.RGBBuffer:
  """Read a raw mosaic, demosaic it and save the RGB result."""
  print('Bayer to RGB Converter')
  print_image_info(settings)
  print(f'Input file: {input_path}')
  print(f'Output file: {output_path}')

  mosaic = tb.read_raw(input_path, settings.width, settings.height, padding=settings.padding, device=device)
  print('Successfully read Bayer image')

  demosaicer = tb.Demosaicer(settings.bayer_pattern, band_rows=settings.band_rows, workers=settings.workers)
  print(f'Converting Bayer to RGB... ({"reference scan" if reference else demosaicer})')

  start = time.perf_counter()
  rgb = demosaicer.scan(mosaic) if reference else demosaicer.process(mosaic)
  print(f'Demosaiced in {(time.perf_counter() - start) * 1000:.1f} ms')

  tb.save_image(rgb, output_path)
  print(f'Successfully converted and saved RGB image: {output_path}')
  return rgb


def parse_device(name: str) -> torch.device:
  try:
    return torch.device(name)
  except RuntimeError as e:
    raise tb.ConfigError(f'Invalid device: {name}') from e


def add_processing_args(parser: argparse.ArgumentParser) -> None:
  parser.add_argument('--band-rows', type=int, default=None, help='Rows per processing band (0 for a single band)')
  parser.add_argument('--workers', type=int, default=None, help='Number of worker threads')
  parser.add_argument('--reference', action='store_true', help='Use the per-pixel reference scan')
  parser.add_argument('--device', type=str, default='cpu', help='Device to use (default: cpu)')


def parse_args(argv: list[str] | None = None):
  parser = argparse.ArgumentParser(
    description='Convert an 8-bit Bayer raw image to RGB',
    epilog='Example: convert_raw 640 480 RGGB input_bayer.raw output.ppm',
  )
  parser.add_argument('width', type=int, help='Image width in pixels')
  parser.add_argument('height', type=int, help='Image height in pixels')
  parser.add_argument('pattern', type=str, help='Bayer pattern (' + ', '.join(tb.bayer.pattern_names()) + ')')
  parser.add_argument('input', type=Path, help='Path to input Bayer raw image file')
  parser.add_argument(
    'output', type=Path, nargs='?', default=None, help='Path to output RGB image file (default: output_rgb.ppm)'
  )
  parser.add_argument('--padding', type=int, default=0, help='Header bytes to skip at the start of the raw file')
  parser.add_argument('--save-settings', type=Path, default=None, help='Write the conversion settings to a JSON file')
  add_processing_args(parser)

  return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
  args = parse_args(argv)

  try:
    pattern = tb.pattern_from_name(args.pattern)
    device = parse_device(args.device)
    overrides = {k: v for k, v in dict(band_rows=args.band_rows, workers=args.workers).items() if v is not None}
    settings = ConversionSettings.create(
      width=args.width,
      height=args.height,
      bayer_pattern=pattern,
      padding=args.padding,
      **overrides,
      **({'output': args.output} if args.output is not None else {}),
    )
  except tb.ConfigError as e:
    print(f'Error: {e}', file=sys.stderr)
    return 1

  try:
    if args.save_settings is not None:
      settings.save_json(args.save_settings)
      print(f'Saved settings to: {args.save_settings}')

    convert(settings, args.input, settings.output, reference=args.reference, device=device)
  except OSError as e:
    print(f'Error: {e}', file=sys.stderr)
    return 1

  return 0


if __name__ == '__main__':
  sys.exit(main())
