"""Bilinear demosaicing of 8-bit Bayer mosaics with PyTorch."""

from . import bayer, buffers, codec, config, debayer
from .bayer import BayerPattern, Color, channels, horizontal_colors, pattern_from_name, rgb_to_bayer
from .buffers import MosaicBuffer, RGBBuffer
from .codec import (
  decode_ppm,
  encode_ppm,
  load_image,
  mosaic_from_bytes,
  read_ppm,
  read_raw,
  save_image,
  write_ppm,
  write_raw,
)
from .config import ConversionSettings, load_settings_from_dir, settings_for_file
from .debayer import Demosaicer, PatternRule, demosaic
from .errors import ConfigError

__version__ = '0.1.0'

__all__ = [
  # Core classes and enums
  'BayerPattern',
  'Color',
  'ConfigError',
  'ConversionSettings',
  'Demosaicer',
  'MosaicBuffer',
  'PatternRule',
  'RGBBuffer',
  # Submodules
  'bayer',
  'buffers',
  'codec',
  'config',
  'debayer',
  # Patterns
  'channels',
  'horizontal_colors',
  'pattern_from_name',
  'rgb_to_bayer',
  # Demosaicing
  'demosaic',
  # Image I/O
  'decode_ppm',
  'encode_ppm',
  'load_image',
  'mosaic_from_bytes',
  'read_ppm',
  'read_raw',
  'save_image',
  'write_ppm',
  'write_raw',
  # Settings
  'load_settings_from_dir',
  'settings_for_file',
]
