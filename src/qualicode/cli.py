"""Command line interface for coding texts against a SQL database.

Usage:
    qualicode text add --title "Interview 1" interview1.txt
    qualicode code add frustration --description "Expressed frustration" --color "#e74c3c"
    qualicode code list
    qualicode apply 1 frustration "it never works"
    qualicode segments
    qualicode render 1
"""

import argparse
import sys
from pathlib import Path

from .config import QualicodeConfig
from .errors import NotFound, QualicodeError
from .log import get_logger, init_logging
from .project import Project
from .resolver import find_occurrences, resolve

logger = get_logger(__name__)


def _read_content(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _print_table(headers: list[str], rows: list[list[str]], out) -> None:
    widths = [len(h) for h in headers]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]
    print("  ".join(h.ljust(w) for h, w in zip(headers, widths)).rstrip(), file=out)
    print("  ".join("-" * w for w in widths), file=out)
    for row in rows:
        print("  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip(), file=out)


def _one_line(text: str, limit: int = 60) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[: limit - 3] + "..."


def cmd_text_add(project: Project, args, out) -> int:
    session = project.session()
    text = session.load_text(args.title, _read_content(args.file))
    print(text.id, file=out)
    return 0


def cmd_code_add(project: Project, args, out) -> int:
    code = project.create_code(args.name, args.description, args.color)
    print(code.id, file=out)
    return 0


def cmd_code_list(project: Project, args, out) -> int:
    rows = [[str(c.id), c.name, c.color, _one_line(c.description)] for c in project.list_codes()]
    _print_table(["id", "name", "color", "description"], rows, out)
    return 0


def cmd_apply(project: Project, args, out) -> int:
    code = project.find_code(args.code)
    if code is None:
        raise NotFound(f"code {args.code!r} does not exist")

    text = project.backend.get_text(args.text_id)
    if args.start is not None:
        start = args.start
    else:
        occurrences = find_occurrences(text.content, args.selection)
        if len(occurrences) > 1:
            logger.warning(
                "selection occurs %d times in text %d; using the first",
                len(occurrences),
                text.id,
            )
        start = resolve(text.content, args.selection).start

    span = project.spans.create(
        text.id, code.id, args.selection, start, start + len(args.selection)
    )
    print(f"{span.id}\t[{span.start}, {span.end})", file=out)
    return 0


def cmd_segments(project: Project, args, out) -> int:
    rows = [
        [
            e.text_title,
            e.code_name,
            _one_line(e.selected_text),
            e.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        ]
        for e in project.review.list()
    ]
    _print_table(["text_title", "code_name", "selected_text", "created_at"], rows, out)
    return 0


def cmd_render(project: Project, args, out) -> int:
    names = {c.id: c.name for c in project.list_codes()}
    parts = []
    for frag in project.render_text(args.text_id):
        if frag.labeled:
            labels = ",".join(sorted(names[i] for i in frag.code_ids))
            parts.append(f"[{labels}]{{{frag.text}}}")
        else:
            parts.append(frag.text)
    print("".join(parts), file=out)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qualicode", description="Code qualitative text data")
    parser.add_argument("--config", help="Path to a config.yaml file")
    parser.add_argument("--database-url", help="SQLAlchemy database URL (overrides config)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    sub = parser.add_subparsers(dest="command", required=True)

    text = sub.add_parser("text", help="Manage texts").add_subparsers(
        dest="text_command", required=True
    )
    text_add = text.add_parser("add", help="Load a text for coding")
    text_add.add_argument("--title", required=True)
    text_add.add_argument("file", help="File to read, or - for stdin")
    text_add.set_defaults(func=cmd_text_add)

    code = sub.add_parser("code", help="Manage codes").add_subparsers(
        dest="code_command", required=True
    )
    code_add = code.add_parser("add", help="Create a code")
    code_add.add_argument("name")
    code_add.add_argument("--description", default="")
    code_add.add_argument("--color", default=None, help="#RRGGBB (default from config)")
    code_add.set_defaults(func=cmd_code_add)
    code_list = code.add_parser("list", help="List codes")
    code_list.set_defaults(func=cmd_code_list)

    apply = sub.add_parser("apply", help="Code a selection within a text")
    apply.add_argument("text_id", type=int)
    apply.add_argument("code", help="Code name")
    apply.add_argument("selection", help="Exact selected substring")
    apply.add_argument(
        "--start",
        type=int,
        default=None,
        help="Exact start offset; by default the first occurrence is used",
    )
    apply.set_defaults(func=cmd_apply)

    segments = sub.add_parser("segments", help="List coded segments, newest first")
    segments.set_defaults(func=cmd_segments)

    render_cmd = sub.add_parser("render", help="Show a text with its coded spans marked")
    render_cmd.add_argument("text_id", type=int)
    render_cmd.set_defaults(func=cmd_render)

    return parser


def main(argv: list[str] | None = None, out=None) -> int:
    out = out or sys.stdout
    args = build_parser().parse_args(argv)

    config = QualicodeConfig(path=args.config)
    init_logging(args.log_level or config.log_level, config.log_format)

    database_url = args.database_url or config.database_url
    try:
        with Project.from_config(config, database_url=database_url) as project:
            return args.func(project, args, out)
    except (QualicodeError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
