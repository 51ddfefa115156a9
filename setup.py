from setuptools import find_packages, setup

setup(
  name='torch-bayer',
  version='0.1.0',
  description='Bilinear demosaicing of 8-bit Bayer raw images with PyTorch',
  python_requires='>=3.12',
  packages=find_packages(include=['torch_bayer', 'torch_bayer.*']),
  package_data={'torch_bayer': ['settings/*.json']},
  install_requires=[
    'beartype',
    'numpy',
    'pillow',
    'pydantic>=2',
    'torch',
  ],
  extras_require={
    'test': ['pytest'],
  },
  entry_points={
    'console_scripts': [
      'convert_raw=torch_bayer.scripts.convert_raw:main',
      'convert_sensor=torch_bayer.scripts.convert_sensor:main',
      'make_raw=torch_bayer.scripts.make_raw:main',
      'benchmark_demosaic=torch_bayer.scripts.benchmark_demosaic:main',
    ],
  },
)
