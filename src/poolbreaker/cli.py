"""
Command-Line Interface (CLI) for poolbreaker
Decodes every .js file under an input directory into a mirrored output tree
"""

import argparse
import json
import logging
import multiprocessing
import sys
from concurrent.futures import ProcessPoolExecutor
from dataclasses import replace
from pathlib import Path

from . import __version__
from .core.files import list_js_files, read_source, write_output
from .core.pipeline import Pipeline, PipelineConfig
from .core.presets import PresetLibrary
from .utils.report_generator import ReportGenerator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='poolbreaker',
        description='poolbreaker - string-array JavaScript deobfuscator',
        epilog='Runs only the reconstructive fragment of each file, inside a V8 sandbox.'
    )

    parser.add_argument(
        '--input',
        type=str,
        default='input',
        help='Directory scanned recursively for .js files (default: input)'
    )

    parser.add_argument(
        '--out',
        '--output',
        dest='output',
        type=str,
        default='decoded',
        help='Directory receiving the mirrored decoded tree (default: decoded)'
    )

    parser.add_argument(
        '--preset',
        type=str,
        choices=PresetLibrary.list_presets(),
        default=None,
        help='Configuration preset (default: balanced)'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        metavar='FILE',
        help='YAML configuration file (overrides --preset)'
    )

    parser.add_argument(
        '--rounds',
        type=int,
        default=None,
        metavar='N',
        help='Maximum pipeline rounds (default: 5)'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        metavar='SECS',
        help='Sandbox wall-clock budget per evaluation (default: 1.0)'
    )

    parser.add_argument(
        '-j', '--jobs',
        type=int,
        default=1,
        metavar='N',
        help='Worker processes; files are independent (default: 1)'
    )

    parser.add_argument(
        '--report',
        type=str,
        default=None,
        metavar='FILE',
        help='Write a Markdown run report'
    )

    parser.add_argument(
        '--json',
        action='store_true',
        help='Print a JSON summary instead of progress lines'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Verbose logging'
    )

    parser.add_argument(
        '-v', '--version',
        action='version',
        version=f'poolbreaker v{__version__}'
    )

    return parser


def load_config(args) -> PipelineConfig:
    if args.config:
        config = PipelineConfig.from_yaml(args.config)
    else:
        config = PipelineConfig.from_preset(args.preset or 'balanced')

    if args.rounds is not None:
        if args.rounds < 1:
            raise ValueError("--rounds must be at least 1")
        config.max_rounds = args.rounds
    if args.timeout is not None:
        config.sandbox_timeout_secs = args.timeout
    return config


def configure_logging(debug: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format='[!] %(message)s' if not debug else '[%(levelname)s] %(name)s: %(message)s',
        stream=sys.stderr,
    )


def process_file(path, config: PipelineConfig):
    """Worker entry point: decode one file (picklable for process pools)"""
    return path, Pipeline(config).run(read_source(path))


def iter_results(files, config: PipelineConfig, jobs: int):
    if jobs <= 1 or len(files) <= 1:
        for path in files:
            yield process_file(path, config)
        return

    worker_config = replace(config, progress_callback=None, preset=None)
    # V8 isolates do not survive fork
    with ProcessPoolExecutor(max_workers=jobs, mp_context=multiprocessing.get_context('spawn')) as pool:
        yield from pool.map(process_file, files, [worker_config] * len(files))


def main(argv=None):
    """
    Main CLI entry point

    With no arguments: ./input -> ./decoded using the balanced preset.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    try:
        config = load_config(args)
    except (OSError, ValueError) as e:
        print(f"[!] Error: {e}", file=sys.stderr)
        sys.exit(2)

    input_root = Path(args.input)
    output_root = Path(args.output)

    files = list_js_files(input_root)
    if not files:
        print(f"[*] No .js files under {input_root}, nothing to do.")
        return 0

    output_root.mkdir(parents=True, exist_ok=True)

    results = []
    try:
        for path, result in iter_results(files, config, args.jobs):
            label = str(path.relative_to(input_root))
            if not args.json:
                print(f"[*] Decoding: {path}")
            out_path = write_output(input_root, output_root, path, result.code)
            if not args.json:
                status = ', '.join(result.techniques_applied) or 'unchanged'
                print(f"[+] Saved: {out_path} ({status}, {result.rounds} round(s))")
            results.append((label, result))

    except KeyboardInterrupt:
        print(f"\n\n[!] Interrupted by user", file=sys.stderr)
        sys.exit(130)

    if args.report:
        report = ReportGenerator().generate_markdown(results, title=str(input_root))
        Path(args.report).write_text(report, encoding='utf-8')
        if not args.json:
            print(f"[+] Markdown report: {args.report}")

    if args.json:
        print(json.dumps({label: r.to_dict() for label, r in results}, indent=2))
    else:
        changed = sum(1 for _, r in results if r.changed)
        print(f"\n[+] Done: {changed}/{len(results)} file(s) changed. Output: {output_root.absolute()}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
