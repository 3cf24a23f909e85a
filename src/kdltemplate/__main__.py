"""CLI entry point: run `kdltemplate main.kdl [lib.kdl ...]` or `python -m kdltemplate ...`."""

import sys
from pathlib import Path


def main(argv=None) -> int:
    import argparse
    from .compiler.driver import TemplateDriver
    from .frontend.parser import ParseError
    from .ir.serialization import dumps, to_kdl
    from .utils.io_utils import file_id_for, read_source_file

    parser = argparse.ArgumentParser(prog="kdltemplate", description="Expand the templates of a KDL document.")
    parser.add_argument("file", type=Path, help="Document whose terminal node is expanded")
    parser.add_argument(
        "imports", type=Path, nargs="*",
        help="Definitions-only documents it may import, addressed by file name without .kdl",
    )
    parser.add_argument("--format", choices=("kdl", "sexpr"), default="kdl", help="Output format (default: kdl)")
    args = parser.parse_args(argv)

    driver = TemplateDriver()
    documents = {}
    for path in [args.file] + list(args.imports):
        if not path.is_file():
            sys.stderr.write(f"kdltemplate: error: file not found: {path}\n")
            return 1
        file_id = file_id_for(path)
        try:
            documents[file_id] = driver.parser.parse(read_source_file(path), file_id)
        except OSError as e:
            sys.stderr.write(f"kdltemplate: error: could not read file: {e}\n")
            return 1
        except ParseError as e:
            sys.stderr.write(f"kdltemplate: error: {e}\n")
            return 1

    result = driver.expand_documents(documents, file_id_for(args.file))
    if result.has_errors():
        result.reporter.print_errors()
        return 1

    sys.stdout.write(dumps(result.node) + "\n" if args.format == "sexpr" else to_kdl(result.node))
    return 0


if __name__ == "__main__":
    sys.exit(main())
