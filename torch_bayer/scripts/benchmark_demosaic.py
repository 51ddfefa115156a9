import argparse
import os
import sys
import time
from typing import Callable

import torch

import torch_bayer as tb
from torch_bayer.bayer import BayerPattern


def benchmark(func: Callable, *args, warmup_iters: int = 2, bench_iters: int = 10) -> float:
  """Images per second of func(*args)."""
  for _ in range(warmup_iters):
    func(*args)

  start = time.perf_counter()
  for _ in range(bench_iters):
    func(*args)
  elapsed = time.perf_counter() - start

  return bench_iters / elapsed


def parse_size(text: str) -> tuple[int, int]:
  try:
    width, height = (int(v) for v in text.lower().split('x'))
  except ValueError as e:
    raise argparse.ArgumentTypeError(f'Expected WIDTHxHEIGHT, got {text!r}') from e
  return width, height


def run_benchmark(size: tuple[int, int], pattern: BayerPattern, band_rows: int, warmup_iters: int, bench_iters: int):
  width, height = size
  generator = torch.Generator().manual_seed(0)
  mosaic = tb.MosaicBuffer(torch.randint(0, 256, (height, width), dtype=torch.uint8, generator=generator))
  workers = os.cpu_count() or 1

  print(f'Image size: {width}x{height}')
  print(f'Pattern: {pattern.name}')
  print(f'Warmup iterations: {warmup_iters}')
  print(f'Benchmark iterations: {bench_iters}')
  print()

  single = tb.Demosaicer(pattern)
  banded = tb.Demosaicer(pattern, band_rows=band_rows, workers=workers)

  print('=== Demosaic Benchmarks ===')
  rate = benchmark(single.process, mosaic, warmup_iters=warmup_iters, bench_iters=bench_iters)
  print(f'Vectorized    : {rate:8.2f} images/sec')

  rate = benchmark(banded.process, mosaic, warmup_iters=warmup_iters, bench_iters=bench_iters)
  print(f'Banded x{workers:<4} : {rate:8.2f} images/sec  ({banded})')

  # the per-pixel scan is orders of magnitude slower, time a single pass
  rate = benchmark(single.scan, mosaic, warmup_iters=0, bench_iters=1)
  print(f'Reference scan: {rate:8.2f} images/sec')


def main(argv: list[str] | None = None) -> int:
  parser = argparse.ArgumentParser(description='Benchmark bilinear demosaicing')
  parser.add_argument('--size', type=parse_size, default=(1920, 1080), help='Image size WIDTHxHEIGHT (default: 1920x1080)')
  parser.add_argument(
    '--pattern', type=str, default='RGGB', choices=tb.bayer.pattern_names(), help='Bayer pattern (default: RGGB)'
  )
  parser.add_argument('--band-rows', type=int, default=128, help='Rows per band for the threaded run (default: 128)')
  parser.add_argument('--warmup-iters', type=int, default=2, help='Number of warmup iterations (default: 2)')
  parser.add_argument('--bench-iters', type=int, default=10, help='Number of benchmark iterations (default: 10)')
  args = parser.parse_args(argv)

  run_benchmark(args.size, BayerPattern[args.pattern], args.band_rows, args.warmup_iters, args.bench_iters)
  return 0


if __name__ == '__main__':
  sys.exit(main())
