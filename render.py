import os
import sys
import warnings
from argparse import ArgumentParser
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

_VERBOSE_FLAGS = {"--verbose", "-v"}
VERBOSE = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


from mandelbrot_tga import (
    HEIGHT,
    MAX_ITERATIONS,
    WIDTH,
    ColorPair,
    EncodeFailed,
    ImageBuffer,
    InvalidWorkerCount,
    RenderFailed,
    RenderParameters,
    RenderResult,
    Viewport,
    color_name,
    format_hex,
    parse_color,
    partition_columns,
    render_frame,
    write_image,
)


@dataclass
class RunConfig:
    params: RenderParameters
    width: int
    height: int
    workers: int
    output_path: Path
    log_path: Path | None
    runs: int


def default_workers(width: int) -> int:
    return max(1, min(os.cpu_count() or 1, width))


def build_parser():
    parser = ArgumentParser(description='Render the Mandelbrot set to an uncompressed TGA image using parallel workers.')

    parser.add_argument('--width', type=int,
                        dest='width', help='image width in pixels',
                        metavar='WIDTH', default=WIDTH)

    parser.add_argument('--height', type=int,
                        dest='height', help='image height in pixels',
                        metavar='HEIGHT', default=HEIGHT)

    parser.add_argument('--left', type=float,
                        dest='left', help='real coordinate of the left edge of the viewport',
                        metavar='LEFT', default=-2.0)

    parser.add_argument('--right', type=float,
                        dest='right', help='real coordinate of the right edge of the viewport',
                        metavar='RIGHT', default=1.0)

    parser.add_argument('--top', type=float,
                        dest='top', help='imaginary coordinate of the top edge of the viewport',
                        metavar='TOP', default=1.125)

    parser.add_argument('--bottom', type=float,
                        dest='bottom', help='imaginary coordinate of the bottom edge of the viewport',
                        metavar='BOTTOM', default=-1.125)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='number of iterations after which a point is considered inside the set',
                        metavar='MAX_ITERATIONS', default=MAX_ITERATIONS)

    parser.add_argument('--workers', '--threads', type=int,
                        dest='workers', help='number of concurrent workers; columns are split evenly and the last worker takes the remainder. Default: CPU count.',
                        metavar='WORKERS', default=None)

    parser.add_argument('--inside-color', type=str,
                        dest='inside_color', help='color of points inside the set: a name (white, black, red, orange, yellow, green, blue, indigo, violet) or #RRGGBB',
                        metavar='COLOR', default='black')

    parser.add_argument('--outside-color', type=str,
                        dest='outside_color', help='color of points that escape, same syntax as --inside-color',
                        metavar='COLOR', default='white')

    parser.add_argument('--output', type=str,
                        dest='output', help='destination TGA file',
                        metavar='OUTPUT', default='mandelbrot.tga')

    parser.add_argument('--log-file', type=str,
                        dest='log_file', help='text file to which a line is appended for every completed run',
                        metavar='LOG_FILE', default='mandelbrot_log.txt')

    parser.add_argument('--no-log', dest='no_log', action='store_true',
                        help='Do not write the run log file.')

    parser.add_argument('--runs', type=int,
                        dest='runs', help='number of times to render the image, reusing the same buffer',
                        metavar='RUNS', default=1)

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including per-chunk progress.')

    return parser


def resolve_run_config(opt, parser: ArgumentParser) -> RunConfig:
    if opt.width < 1 or opt.height < 1:
        parser.error("--width and --height must be positive.")
    if opt.runs < 1:
        parser.error("--runs must be at least 1.")

    try:
        viewport = Viewport(left=opt.left, right=opt.right, top=opt.top, bottom=opt.bottom)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        colors = ColorPair(inside=parse_color(opt.inside_color), outside=parse_color(opt.outside_color))
    except ValueError as exc:
        parser.error(str(exc))

    try:
        params = RenderParameters(viewport=viewport, colors=colors, max_iterations=opt.max_iterations)
    except ValueError as exc:
        parser.error(str(exc))

    workers = opt.workers if opt.workers is not None else default_workers(opt.width)
    try:
        partition_columns(opt.width, workers)
    except InvalidWorkerCount as exc:
        parser.error(str(exc))

    output_path = Path(opt.output).expanduser()
    if not output_path.suffix:
        output_path = output_path.with_suffix(".tga")
    elif output_path.suffix.lower() != ".tga":
        parser.error("--output must end with .tga.")
    if output_path.exists() and output_path.is_dir():
        parser.error("--output must point to a file, not a directory.")

    log_path = None if opt.no_log else Path(opt.log_file).expanduser().resolve()

    return RunConfig(
        params=params,
        width=opt.width,
        height=opt.height,
        workers=workers,
        output_path=output_path.resolve(),
        log_path=log_path,
        runs=opt.runs,
    )


def format_run_log(config: RunConfig, result: RenderResult, run_index: int) -> str:
    colors = config.params.colors
    viewport = config.params.viewport
    timestamp = datetime.now().isoformat(timespec="seconds")
    return (
        f"{timestamp} run {run_index + 1}/{config.runs}: "
        f"{config.width}x{config.height}, "
        f"viewport [{viewport.left:.6g}, {viewport.right:.6g}] x [{viewport.bottom:.6g}, {viewport.top:.6g}], "
        f"{result.workers} workers, "
        f"inside {color_name(colors.inside)} ({format_hex(colors.inside)}), "
        f"outside {color_name(colors.outside)} ({format_hex(colors.outside)}), "
        f"{config.params.max_iterations} max iterations, "
        f"{result.elapsed_ms:.0f} ms, "
        f"output {config.output_path}\n"
    )


def append_run_log(log_path: Path, line: str) -> None:
    """Append ``line`` to the run log, warning instead of failing on I/O errors."""

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with open(log_path, "a", encoding="utf-8") as handle:
            handle.write(line)
    except OSError as exc:
        warnings.warn(f"Could not write run log {log_path}: {exc}", RuntimeWarning, stacklevel=2)


def prepare_output_dir(output_path: Path) -> None:
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise EncodeFailed(exc, output_path) from exc


def _print_progress(completed, total):
    log("chunk {0} out of {1}".format(completed, total), end='\r')


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    config = resolve_run_config(opt, parser)

    colors = config.params.colors
    print("Generating a {0} and {1} Mandelbrot set...".format(color_name(colors.inside), color_name(colors.outside)))
    log("Resolution %dx%d, %d workers, %d max iterations" % (config.width, config.height, config.workers, config.params.max_iterations))

    buffer = ImageBuffer(config.width, config.height)

    for run_index in range(config.runs):
        try:
            result = render_frame(config.params, buffer, workers=config.workers, progress=_print_progress)
        except RenderFailed as exc:
            print(f"Render failed: {exc}", file=sys.stderr)
            return 1
        log("")

        try:
            prepare_output_dir(config.output_path)
            write_image(config.output_path, result.image)
        except EncodeFailed as exc:
            print(f"Encode failed: {exc}", file=sys.stderr)
            return 1

        print("Run {0} of {1}: rendered in {2:.0f} ms, written to {3}".format(run_index + 1, config.runs, result.elapsed_ms, config.output_path))

        if config.log_path is not None:
            append_run_log(config.log_path, format_run_log(config, result, run_index))

    return 0


if __name__ == '__main__':
    sys.exit(main())
