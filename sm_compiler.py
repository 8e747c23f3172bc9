import argparse
import json
import logging
import os
import sys

import yaml

from hacodegen import __version__
from hacodegen.config import GeneratorConfig
from hacodegen.generator import HomeAssistantGenerator
from hacodegen.model import ModelError

log = logging.getLogger("sm_compiler")


def load_model(path):
    """Read a model export: `.json` files with the json module, anything else as YAML."""
    if not os.path.exists(path):
        sys.exit(f"Error: File '{path}' not found.")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.lower().endswith(".json"):
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        sys.exit(f"Syntax Error in '{path}': {e}")
    if not isinstance(data, dict):
        sys.exit(f"Error: '{path}' does not contain a model object.")
    return data


def write_artifacts(artifacts, output_dir):
    if output_dir and not os.path.isdir(output_dir):
        os.makedirs(output_dir, exist_ok=True)
    written = []
    for name, content in artifacts.items():
        out_path = os.path.join(output_dir, name)
        with open(out_path, "w", encoding="utf-8") as f:
            f.write(content)
        log.info("Wrote %s", out_path)
        print(f" -> {out_path} created.")
        written.append(out_path)
    return written


def configure_logging(verbose=False, quiet=False):
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def build_parser():
    parser = argparse.ArgumentParser(
        description="Compile a state machine model export into a Home Assistant automation")
    parser.add_argument("file", nargs="?", help="Input model (JSON or YAML, flat 'objects' or tree 'root' shape)")
    parser.add_argument("-v", "--version", action="store_true", help="Print the version and exit")
    parser.add_argument("-o", "--output", default=".",
                        help="Output directory (default: current directory)")
    parser.add_argument("--prefix", default="", help="Prefix for every generated file name")
    parser.add_argument("--dot", action="store_true", help="Also write a Graphviz diagram")
    parser.add_argument("--no-debug-model", action="store_true",
                        help="Do not write the <id>_model.json debug dump")
    parser.add_argument("--icon", default=GeneratorConfig.icon, help="Icon of the state selector")
    parser.add_argument("--mode", default=GeneratorConfig.mode,
                        choices=["single", "restart", "queued", "parallel"],
                        help="Automation run mode")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Log debug details")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log errors")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return 0
    if not args.file:
        parser.error("the following arguments are required: file")

    configure_logging(args.verbose, args.quiet)

    config = GeneratorConfig(
        icon=args.icon,
        mode=args.mode,
        file_prefix=args.prefix,
        include_debug_model=not args.no_debug_model,
        include_dot=args.dot,
    )
    model = load_model(args.file)

    try:
        artifacts = HomeAssistantGenerator(model, config).generate()
    except ModelError as e:
        sys.exit(f"Error: {e}")
    except Exception as e:
        print(f"\nCRITICAL ERROR during generation: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)

    write_artifacts(artifacts, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
