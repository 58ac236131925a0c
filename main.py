import argparse
import dataclasses
import os

from serving import load_config, serve_overlay


def parse_patch(value: str) -> tuple[int, str]:
    """
    OFFSET:PATCH_FILE
    """
    offset, sep, path = value.partition(':')
    if not sep or not path:
        raise argparse.ArgumentTypeError(f"expected OFFSET:PATCH_FILE, got {value}")
    try:
        offset = int(offset, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid offset: {offset}")
    if offset < 0:
        raise argparse.ArgumentTypeError(f"negative offset: {offset}")
    return offset, path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Serve a file with byte-range patches applied on top of it')
    parser.add_argument('base', help='file to serve, never modified')
    parser.add_argument('--patch', action='append', type=parse_patch, default=[], metavar='OFFSET:PATCH_FILE',
                        help='overlay the contents of PATCH_FILE at OFFSET, later patches win')
    parser.add_argument('--config', help='json file with server settings')
    parser.add_argument('--host')
    parser.add_argument('--port', type=int)
    parser.add_argument('--name', help='file name announced to clients')
    return parser


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    overrides = {key: value for key, value in (('host', args.host), ('port', args.port)) if value is not None}
    config = dataclasses.replace(config, **overrides)

    patches: list[tuple[int, bytes]] = []
    for offset, path in args.patch:
        with open(path, mode='rb') as f:
            patches.append((offset, f.read()))

    with open(args.base, mode='rb') as base:
        serve_overlay(base, args.name or os.path.basename(args.base), patches, config)


if __name__ == '__main__':
    main()
