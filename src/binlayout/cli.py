from __future__ import annotations
import argparse, json, logging, sys

from .exceptions import LayoutError
from .layout.loader import load_layout


def _offset(s: str) -> int:
    n = int(s, 0)
    if n < 0:
        raise argparse.ArgumentTypeError(f"offset must be non-negative, got {s}")
    return n


def _print_trace(field: str, offset: int, value: object) -> None:
    print(f"[trace] {field} @{offset} -> {value!r}", file=sys.stderr)


def cmd_parse(args):
    from .binary.reader import iter_records, parse_file

    layout = load_layout(args.layout)
    struct = layout.get(args.struct)
    trace = _print_trace if args.trace else None

    if args.repeat is not None or args.all:
        out = list(iter_records(struct, args.data, offset=args.offset, limit=args.repeat, trace=trace))
    else:
        out = parse_file(struct, args.data, offset=args.offset, trace=trace)
    print(json.dumps(out, indent=2, default=str))


def cmd_describe(args):
    layout = load_layout(args.layout)
    for name, struct in layout.structs.items():
        mark = " (root)" if name == layout.root else ""
        print(f"{name}{mark}")
        for m in struct.members:
            print(f"  {m!r}")


def build_parser():
    p = argparse.ArgumentParser(prog="binlayout", description="Declarative binary record parser")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("parse", help="decode records from a binary file and print them as JSON")
    sp.add_argument("layout", help="Path to a JSON layout document")
    sp.add_argument("data", help="Path to the binary file")
    sp.add_argument("--struct", default=None, help="Struct to decode (defaults to the layout root)")
    sp.add_argument("--offset", type=_offset, default=0, help="Start offset (accepts 0x..)")
    sp.add_argument("--repeat", type=int, default=None, help="Decode N back-to-back records")
    sp.add_argument("--all", action="store_true", help="Decode back-to-back records until end of file")
    sp.add_argument("--trace", action="store_true", help="Print steps marked debug to stderr instead of the log")
    sp.set_defaults(func=cmd_parse)

    sp = sub.add_parser("describe", help="list the structs and members of a layout")
    sp.add_argument("layout")
    sp.set_defaults(func=cmd_describe)

    return p


def main(argv=None):
    p = build_parser()
    ns = p.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        ns.func(ns)
    except (LayoutError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
