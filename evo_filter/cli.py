# ============================================================
# EVO-FILTER command line
# Approximates an image with randomly stamped fragments and
# writes the result as SVG plus a PNG preview.
# ============================================================

import argparse
import logging
import signal
import sys
import time

from . import config
from .config import SearchConfig
from .errors import ConfigError, EvoFilterError, InputError
from .export import write_preview, write_svg
from .imaging import load_target, make_strip
from .library import load_library, render_vector_library
from .scoring import compute_metrics
from .search import GreedySearch


def match_percent(s):
    try:
        value = float(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{s} is not a number")
    if not 0.0 <= value <= 100.0:
        raise argparse.ArgumentTypeError(f"{s} is not in the range 0.0-100.0 inclusive")
    return value


def output_path(input_path, output=None):
    out = output or input_path + ".svg"
    return out if out.endswith(".svg") else out + ".svg"


def build_parser():
    p = argparse.ArgumentParser(
        prog="image-evo-filter",
        description="Rebuild an image out of many small recolored fragments and export it as SVG.",
    )
    p.add_argument("input", help="Input image")
    p.add_argument("-o", "--output", help="Output SVG (default: INPUT.svg); .svg is appended if missing")
    p.add_argument("-s", "--shapes", type=int, default=config.DEFAULT_SHAPES,
                   help="Minimum number of shapes to place, 0 to disable (default: %(default)s)")
    p.add_argument("-m", "--matchscore", type=match_percent,
                   help="Minimum match percentage 0-100; with --shapes both must be reached. "
                        "100%% is unreachable, 25-50%% is usually enough")
    p.add_argument("-c", "--cmpwidth", type=int, default=config.DEFAULT_CMP_WIDTH,
                   help="Image width used for comparison (default: %(default)s)")
    p.add_argument("-b", "--batch", type=int, default=config.DEFAULT_BATCH_SIZE,
                   help="Candidates evaluated per round (default: %(default)s)")
    p.add_argument("-f", "--max-failures", type=int, default=config.DEFAULT_MAX_FAILURES,
                   help="Stop after this many failed rounds in a row, 0 to disable (default: %(default)s)")
    p.add_argument("--fragments", default=config.FRAGMENT_RASTER_DIR,
                   help="Raster fragment directory (default: %(default)s)")
    p.add_argument("--vectors", default=config.FRAGMENT_VECTOR_DIR,
                   help="Vector source directory paired with --fragments (default: %(default)s)")
    p.add_argument("--render-fragments", action="store_true",
                   help="Rasterise --vectors into --fragments before loading")
    p.add_argument("-j", "--jobs", type=int, default=config.N_CORES,
                   help="Parallel workers (default: %(default)s)")
    p.add_argument("--seed", type=int, help="Seed for the candidate generator")
    p.add_argument("--snapshot-every", type=int, default=0,
                   help="Keep a canvas snapshot every K placed shapes for --strip")
    p.add_argument("--strip", help="Write a progress strip of the snapshots to this PNG")
    p.add_argument("--history", help="Write the placement history archive (.npz)")
    return p


def config_from_args(args):
    return SearchConfig(
        target_score=(args.matchscore or 0.0) / 100.0,
        target_shapes=args.shapes,
        batch_size=args.batch,
        max_consecutive_failures=args.max_failures,
        n_jobs=args.jobs,
        snapshot_every=args.snapshot_every,
        seed=args.seed,
    ).validate()


def run(args):
    t0 = time.time()
    cfg = config_from_args(args)
    out = output_path(args.input, args.output)

    print("== EVO-FILTER start ==")
    print("Loading source image...")
    target = load_target(args.input, args.cmpwidth)
    print(f"Loaded source image ({target.original_size[0]}x{target.original_size[1]} -> "
          f"{target.width}x{target.height})")

    if args.render_fragments:
        n = render_vector_library(args.vectors, args.fragments)
        print(f"Rendered {n} vector fragments into {args.fragments}")
    print("Loading fragment images...")
    library = load_library(args.fragments, args.vectors, n_jobs=args.jobs)
    if not library:
        raise InputError(f"no usable fragment images under {args.fragments}")

    search = GreedySearch(target, library, cfg)

    def handle_interrupt(signum=None, frame=None):
        search.request_stop()
        print("\nStop signal received, finishing current round...")
    previous = {s: signal.signal(s, handle_interrupt) for s in (signal.SIGINT, signal.SIGTERM)}
    try:
        history = search.run()
    finally:
        for s, handler in previous.items():
            signal.signal(s, handler)

    metrics = compute_metrics(search.canvas, target)
    print("Final metrics:")
    for k, v in metrics.items():
        print(f"   {k:6s}: {v:.6f}")

    print(f"Image finished! {len(history)} placements from {len(history.sources())} distinct fragments")
    print("Saving... this may take a while")
    # raster outputs first, a failed vector export must not lose the canvas
    write_preview(search.canvas, out + ".png")
    if args.strip:
        make_strip(search.snapshots + [search.canvas], args.strip)
    if args.history:
        history.save(args.history)
    write_svg(history, target, out)
    print(f"Saved {out} and {out}.png | done in {time.time()-t0:.1f}s")
    return 0


def main(argv=None):
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = build_parser().parse_args(argv)
    try:
        return run(args)
    except ConfigError as e:
        print(e, file=sys.stderr)
        return 2
    except EvoFilterError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
