from enum import Enum
from pathlib import Path
from typing import Annotated, Literal

from beartype import beartype
from pydantic import BaseModel, GetCoreSchemaHandler, ValidationError
from pydantic_core import core_schema

from .bayer import BayerPattern
from .errors import ConfigError


class Validator:
  """Base class for all field validators."""
  description: str


class Int(Validator):
  def __init__(self, range: tuple[int, int | None], description: str):
    self.range = range
    self.description = description

  def __get_pydantic_core_schema__(self, _source_type, _handler: GetCoreSchemaHandler):
    def validate(v: int):
      if isinstance(v, bool) or not isinstance(v, int):
        raise ValueError(f'{v!r} is not an integer')
      lower, upper = self.range
      if v < lower or (upper is not None and v > upper):
        raise ValueError(f'{v} not in [{lower}, {upper if upper is not None else "inf"}]')
      return v
    return core_schema.no_info_plain_validator_function(validate)


class EnumValidator[TEnum: Enum](Validator):
  def __init__(self, enum_type: type[TEnum], description: str):
    self.enum_type = enum_type
    self.description = description

  def __get_pydantic_core_schema__(self, _source_type, _handler: GetCoreSchemaHandler):
    def validate(v):
      if isinstance(v, self.enum_type):
        return v
      if isinstance(v, str) and v in self.enum_type.__members__:
        return self.enum_type[v]
      valid = ', '.join(self.enum_type.__members__)
      raise ValueError(f'{v!r} is not a {self.enum_type.__name__} (one of {valid})')

    def serialize(v):
      return v.name

    return core_schema.no_info_plain_validator_function(
      validate,
      serialization=core_schema.plain_serializer_function_ser_schema(serialize, when_used='always')
    )


class ConversionSettings(BaseModel, frozen=True):
  type: Literal['conversion_settings'] = 'conversion_settings'

  name: str = 'default'
  width: Annotated[int, Int(range=(1, None), description='Image width in pixels')]
  height: Annotated[int, Int(range=(1, None), description='Image height in pixels')]
  bayer_pattern: Annotated[
    BayerPattern, EnumValidator(BayerPattern, description='Bayer pattern')
  ] = BayerPattern.RGGB

  # bytes to skip before the first sample
  padding: Annotated[int, Int(range=(0, None), description='Header bytes')] = 0

  band_rows: Annotated[int, Int(range=(0, None), description='Rows per band (0 for one band)')] = 0
  workers: Annotated[int, Int(range=(1, 256), description='Worker threads')] = 1

  output: Path = Path('output_rgb.ppm')

  @property
  def image_size(self) -> tuple[int, int]:
    return (self.width, self.height)

  @property
  def raw_size(self) -> int:
    """Expected size in bytes of a raw file with these settings."""
    return self.width * self.height + self.padding

  @classmethod
  def create(cls, **kwargs) -> 'ConversionSettings':
    """Validate settings, reporting failures as ConfigError."""
    try:
      return cls(**kwargs)
    except ValidationError as e:
      raise ConfigError(_describe(e)) from e

  @beartype
  def save_json(self, path: Path) -> None:
    """Save settings to a JSON file."""
    path.write_text(self.model_dump_json(indent=2))

  @classmethod
  @beartype
  def load_json(cls, path: Path) -> 'ConversionSettings':
    """Load settings from a JSON file."""
    try:
      return cls.model_validate_json(path.read_text())
    except ValidationError as e:
      raise ConfigError(f'{path}: {_describe(e)}') from e


def _describe(error: ValidationError) -> str:
  return '; '.join(f'{".".join(str(p) for p in err["loc"])}: {err["msg"]}' for err in error.errors())


def get_settings_dir() -> Path:
  """Get the bundled settings directory path."""
  return Path(__file__).parent / 'settings'


def load_settings_from_dir(settings_dir: Path | None = None) -> dict[str, ConversionSettings]:
  """Load all conversion settings from JSON files in the settings directory."""
  if settings_dir is None:
    settings_dir = get_settings_dir()

  settings = {}
  for json_file in sorted(settings_dir.glob('*.json')):
    conversion_settings = ConversionSettings.load_json(json_file)
    settings[conversion_settings.name] = conversion_settings

  return settings


def settings_for_file(file_path: Path, settings_dir: Path | None = None) -> ConversionSettings:
  """Find the settings whose expected raw size matches the file size."""
  all_settings = load_settings_from_dir(settings_dir)

  file_size = file_path.stat().st_size
  for settings in all_settings.values():
    if settings.raw_size == file_size:
      return settings

  known_sizes = {name: s.raw_size for name, s in all_settings.items()}
  raise ConfigError(
    f'Could not find settings for "{file_path}": file size {file_size} bytes does not match any known sensor '
    f'{known_sizes}'
  )


__all__ = [
  'ConversionSettings',
  'EnumValidator',
  'Int',
  'get_settings_dir',
  'load_settings_from_dir',
  'settings_for_file',
]
