"""Error types shared by the readers, settings and the layout selector."""


class ConfigError(ValueError):
  """Raised for invalid image geometry, Bayer pattern names or settings."""


__all__ = ['ConfigError']
