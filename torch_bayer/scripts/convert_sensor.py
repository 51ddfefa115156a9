import argparse
from pathlib import Path
import sys

import torch_bayer as tb
from torch_bayer.config import ConversionSettings, load_settings_from_dir, settings_for_file

from .convert_raw import add_processing_args, convert, parse_device


def parse_args(argv: list[str] | None = None):
  parser = argparse.ArgumentParser(description='Convert a Bayer raw image using saved sensor settings')
  parser.add_argument('input', type=Path, help='Path to input Bayer raw image file')
  parser.add_argument('output', type=Path, nargs='?', default=None, help='Path to output RGB image file')
  parser.add_argument('--sensor', type=str, default=None, help='Sensor settings name (default: match by file size)')
  parser.add_argument('--settings', type=Path, default=None, help='Settings JSON file to use')
  parser.add_argument('--settings-dir', type=Path, default=None, help='Directory of settings JSON files')
  add_processing_args(parser)

  return parser.parse_args(argv)


def resolve_settings(args) -> ConversionSettings:
  if args.settings is not None:
    return ConversionSettings.load_json(args.settings)

  if args.sensor is not None:
    all_settings = load_settings_from_dir(args.settings_dir)
    if args.sensor not in all_settings:
      raise tb.ConfigError(f'Unknown sensor: {args.sensor}. Available sensors: {list(all_settings.keys())}')
    return all_settings[args.sensor]

  return settings_for_file(args.input, args.settings_dir)


def main(argv: list[str] | None = None) -> int:
  args = parse_args(argv)

  try:
    device = parse_device(args.device)
    settings = resolve_settings(args)
    updates = {k: v for k, v in dict(band_rows=args.band_rows, workers=args.workers).items() if v is not None}
    if updates:
      settings = ConversionSettings.create(**(settings.model_dump() | updates))
    output = args.output if args.output is not None else settings.output
    print(f'Using settings: {settings.name}')
    convert(settings, args.input, output, reference=args.reference, device=device)
  except (tb.ConfigError, OSError) as e:
    print(f'Error: {e}', file=sys.stderr)
    return 1

  return 0


if __name__ == '__main__':
  sys.exit(main())
