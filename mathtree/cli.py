import argparse
import json
import sys
import warnings
import webbrowser
from pathlib import Path

import yaml

from .api import convert, parse_atoms, parse_latex
from .config import apply_style_defaults, available_styles, load_config
from .nodes import Node
from .renderers.preview import render_preview


def _load_atoms(path: Path) -> list:
    """Read an atom stream from a JSON or YAML file."""
    text = path.read_text(encoding="utf-8")
    data = json.loads(text) if path.suffix.lower() == ".json" else yaml.safe_load(text)
    if isinstance(data, dict) and "atoms" in data:
        data = data["atoms"]
    if not isinstance(data, list):
        raise ValueError(f"'{path}' must contain a list of atoms.")
    return data


def format_tree(node, indent: int = 0) -> str:
    """Return an indented, one-node-per-line outline of *node*."""
    pad = "  " * indent
    if node is None:
        return f"{pad}(empty)"
    if isinstance(node, tuple):
        return "\n".join(format_tree(child, indent) for child in node)
    if not isinstance(node, Node):
        return f"{pad}{node!r}"

    fields = dict(vars(node))
    sup = fields.pop("sup")
    sub = fields.pop("sub")
    children = {k: v for k, v in fields.items() if isinstance(v, (Node, tuple)) and k != "fence"}
    scalars = ", ".join(f"{k}={v!r}" for k, v in fields.items() if k not in children)
    lines = [f"{pad}{type(node).__name__}({scalars})"]
    for name, child in list(children.items()) + [("sup", sup), ("sub", sub)]:
        if child is None:
            continue
        lines.append(f"{pad}  {name}:")
        lines.append(format_tree(child, indent + 2))
    return "\n".join(lines)


def main() -> None:
    """CLI entry point: parse math input and print normalized LaTeX."""
    styles = available_styles()
    parser = argparse.ArgumentParser(
        prog="mathtree",
        description="Parse math input into an expression tree and print normalized LaTeX",
    )
    parser.add_argument("expression", nargs="?", default=None, help="LaTeX math expression")
    parser.add_argument(
        "-f", "--file", type=Path, default=None, help="Read an atom stream from a JSON or YAML file"
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=None, help="Path to config.yaml (optional)"
    )
    parser.add_argument(
        "-s",
        "--style",
        type=str,
        choices=styles,
        default="default",
        help=f"Formatting style (choices: {', '.join(styles)}; default: default)",
    )
    parser.add_argument(
        "--ast",
        action="store_true",
        help="Print the parsed expression tree instead of LaTeX",
    )
    parser.add_argument(
        "--preview",
        type=Path,
        default=None,
        help="Also render the result to this PNG file",
    )
    parser.add_argument(
        "--open",
        action="store_true",
        help="Open the preview image when done",
    )

    args = parser.parse_args()

    if (args.expression is None) == (args.file is None):
        print("Error: give either an expression or --file.", file=sys.stderr)
        sys.exit(1)
    if args.file is not None and not args.file.exists():
        print(f"Error: '{args.file}' not found.", file=sys.stderr)
        sys.exit(1)

    try:
        config = apply_style_defaults(load_config(args.config), args.style)
        source = args.expression if args.file is None else _load_atoms(args.file)
        if args.ast:
            if isinstance(source, str):
                tree = parse_latex(source, config=config)
            else:
                tree = parse_atoms(source, config=config)
            output = format_tree(tree)
        else:
            output = convert(source, config=config)
    except (ValueError, TypeError, OSError, yaml.YAMLError) as exc:
        print(f"Conversion failed: {exc}", file=sys.stderr)
        sys.exit(1)

    print(output)

    if args.preview is not None:
        latex = output if not args.ast else convert(source, config=config)
        try:
            args.preview.write_bytes(render_preview(latex, config.preview))
        except (ValueError, RuntimeError, OSError) as exc:
            warnings.warn(f"Preview rendering failed: {exc}", RuntimeWarning, stacklevel=2)
            return
        print(f"Written → {args.preview}", file=sys.stderr)
        if args.open:
            webbrowser.open(args.preview.absolute().as_uri())


if __name__ == "__main__":
    main()
