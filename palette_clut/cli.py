"""
palette_clut CLI.
Recolour RGBA images to a colour theme. Supports "clut" and "nn" strategies.

Usage:
  palette-clut INPUT --theme NAME [--outdir DIR] [--mode clut|nn] [--level L] [--config FILE] --debug
  palette-clut --list-themes

Modes:
  clut : Cached RBF lookup cube applied with trilinear interpolation. Smooth gradients.
  nn   : Nearest palette colour per pixel (luma-weighted RGB distance). No cache.

Input:
  Any Pillow-readable image, or a folder of them. Alpha is preserved.

Output:
  PNG. If --outdir is omitted, writes <stem>_<theme>.png next to INPUT.
"""

from __future__ import annotations

import argparse
import os
import re
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

import numpy as np

from .config import EngineConfig, load_config
from .engine import Recolourer
from .errors import PaletteClutError
from .image_io import load_image_rgba, save_image_rgba
from .utils import (
    capture_output,
    enable_line_buffered_stdout,
    error,
    format_seconds_compact,
    format_total_duration_compact,
    debug_log,
    key_value_pairs_to_string,
    log,
    print_banner,
    print_config_line,
)

IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif", ".tif", ".tiff"}


def parse_cli_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse CLI arguments for theme recolouring.

    Returns:
      argparse.Namespace with:
        src: Path to image or folder (optional with --list-themes)
        theme: theme name or theme file path
        outdir: optional Path for outputs
        mode: None | "clut" | "nn" (None -> config)
        level: None | cube level override
        config: optional YAML config path
        cache_root / themes_dir: optional overrides
        jobs: parallel file workers
        workers: row-band threads per image
        list_themes, debug: bools
    """
    parser = argparse.ArgumentParser(
        prog="palette-clut",
        description="Recolour image(s) to a colour theme through a cached lookup cube.",
    )
    parser.add_argument("src", type=Path, nargs="?", help="Input image or folder")
    parser.add_argument("--theme", "-t", default="default", help="Theme name or theme file")
    parser.add_argument(
        "--outdir", type=Path, default=None, help="Output directory (optional)"
    )
    parser.add_argument(
        "--mode", choices=["clut", "nn"], default=None, help="Recolouring mode."
    )
    parser.add_argument("--level", type=int, default=None, help="Cube level (steps per channel)")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--cache-root", type=Path, default=None, help="Cube cache root")
    parser.add_argument(
        "--themes-dir",
        type=Path,
        action="append",
        default=None,
        help="Extra folder of JSON/YAML themes (repeatable)",
    )
    parser.add_argument(
        "--jobs", type=int, default=2, help="Files processed in parallel"
    )
    parser.add_argument(
        "--workers", type=int, default=None, help="Row-band threads per image (default: config)"
    )
    parser.add_argument("--list-themes", action="store_true", help="List themes and exit")
    parser.add_argument("--debug", action="store_true", help="Verbose details")
    return parser.parse_args(argv)


def _output_label(theme: str) -> str:
    label = Path(theme).stem if ("/" in theme or "\\" in theme) else theme
    return re.sub(r"[^A-Za-z0-9._-]+", "_", label) or "theme"


def _process_single_image(
    src_path: Path,
    out_path: Optional[Path],
    theme: str,
    recolourer: Recolourer,
) -> None:
    """Load -> recolour -> save -> report for one file."""
    t_start = time.perf_counter()
    debug = recolourer.config.debug
    if out_path is None:
        out_path = src_path.with_name(f"{src_path.stem}_{_output_label(theme)}.png")

    print_banner(src_path.name)
    image = load_image_rgba(src_path)
    height, width = image.shape[0], image.shape[1]
    if debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Loaded", f"{width}x{height}"),
                    ("Alpha=0", int(np.count_nonzero(image[..., 3] == 0))),
                ]
            )
        )
    t_loaded = time.perf_counter()

    mapped = recolourer.recolour(image, theme)
    t_mapped = time.perf_counter()

    written = save_image_rgba(out_path, mapped)
    t_saved = time.perf_counter()

    log(f"Mode: {recolourer.config.mode}")
    log(f"Wrote {written.name} | size={width}x{height} | theme={theme}")
    if debug:
        map_secs = t_mapped - t_loaded
        if map_secs > 0:
            mpx = (width * height) / 1e6
            debug_log(f"throughput {mpx / map_secs:.2f} MPx/s  ({mpx:.2f} MPx in {format_seconds_compact(map_secs)})")
        debug_log(
            f"Total {format_total_duration_compact(t_saved - t_start)}  "
            f"(load={format_seconds_compact(t_loaded - t_start)}, "
            f"map={format_seconds_compact(map_secs)}, save={format_seconds_compact(t_saved - t_mapped)})"
        )
    else:
        log(f"Total time {format_total_duration_compact(t_saved - t_start)}")


def _destination(path: Path, outdir: Optional[Path], theme: str) -> Optional[Path]:
    return (outdir / f"{path.stem}_{_output_label(theme)}.png") if outdir else None


def _process_one_captured(
    path: Path, outdir: Optional[Path], theme: str, recolourer: Recolourer
) -> str:
    """
    Process a single file with its log lines captured for this thread.

    Useful for concurrent execution where output should be printed in order.
    """
    with capture_output() as buf:
        _process_single_image(path, _destination(path, outdir, theme), theme, recolourer)
    return buf.getvalue()


def _build_config(args: argparse.Namespace) -> EngineConfig:
    cfg = load_config(args.config)
    theme_dirs = list(cfg.theme_dirs) + list(args.themes_dir or [])
    return cfg.with_overrides(
        mode=args.mode,
        level=args.level,
        cache_root=args.cache_root,
        workers=args.workers,
        theme_dirs=theme_dirs,
        debug=True if args.debug else None,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Handles single file or folder. In folder mode supports --jobs parallelism
    while preserving readable output ordering. All jobs share one Recolourer,
    hence one CubeStore and one cube-creation lock.
    """
    enable_line_buffered_stdout()
    args = parse_cli_args(argv)

    try:
        cfg = _build_config(args)
        recolourer = Recolourer(cfg)
    except PaletteClutError as exc:
        error(str(exc))
        return 2

    if args.list_themes:
        for name in recolourer.registry.names():
            log(name)
        return 0

    if args.src is None:
        error("missing input image or folder")
        return 2
    src: Path = args.src
    if not src.exists():
        error(f"not found: {src}")
        return 2

    try:
        recolourer.resolve(args.theme)
    except PaletteClutError as exc:
        error(str(exc))
        return 2

    print_config_line(
        "run",
        [
            ("CPU cores", os.cpu_count() or 1),
            ("Mode", cfg.mode),
            ("Level", cfg.level),
            ("Workers", cfg.workers),
            ("Jobs", args.jobs),
        ],
        debug=False,
    )
    if cfg.debug:
        debug_log(
            key_value_pairs_to_string(
                [
                    ("Theme", args.theme),
                    ("Cache", str(recolourer.store.clut_dir)),
                    ("Kernel", cfg.rbf_kernel),
                    ("Sigma", cfg.rbf_sigma),
                ]
            )
        )

    if args.outdir is not None:
        args.outdir.mkdir(parents=True, exist_ok=True)

    try:
        if src.is_dir():
            label = f"_{_output_label(args.theme)}"
            files = sorted(
                (
                    p
                    for p in src.iterdir()
                    if p.is_file()
                    and p.suffix.lower() in IMAGE_EXTS
                    and not p.stem.endswith(label)
                ),
                key=lambda p: p.name.lower(),
            )
            if cfg.debug:
                debug_log(key_value_pairs_to_string([("Images", len(files)), ("Jobs", args.jobs)]))
            if args.jobs <= 1:
                for p in files:
                    _process_single_image(
                        p, _destination(p, args.outdir, args.theme), args.theme, recolourer
                    )
            else:
                with ThreadPoolExecutor(max_workers=args.jobs) as ex:
                    futures = [
                        ex.submit(_process_one_captured, p, args.outdir, args.theme, recolourer)
                        for p in files
                    ]
                    blocks = [f.result() for f in futures]
                print("".join(blocks), end="", flush=True)
        else:
            _process_single_image(
                src, _destination(src, args.outdir, args.theme), args.theme, recolourer
            )
    except (PaletteClutError, OSError) as exc:
        error(str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
