"""Command-line interface for cellcalc."""

import argparse
import logging
import sys

from cellcalc import read_table, write_table
from cellcalc.calc import TableError, TableEvaluator


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="cellcalc",
        description="Evaluate a table of cells that reference each other",
    )
    parser.add_argument("filename", help="Path to the delimited input table")
    parser.add_argument(
        "--output", "-o", help="Write the solved table here (default: stdout)"
    )
    parser.add_argument(
        "--delimiter", "-d", default=",", help="Field delimiter (default: ',')"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Log each evaluated cell"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        table = read_table(args.filename, delimiter=args.delimiter)
    except TableError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    evaluator = TableEvaluator()
    evaluator.load(table)
    result = evaluator.result()

    if args.output:
        with open(args.output, "w", newline="", encoding="utf-8") as f:
            write_table(result.solved, f, delimiter=args.delimiter)
    else:
        write_table(result.solved, sys.stdout, delimiter=args.delimiter)

    if result.error_cells:
        logging.getLogger("cellcalc").info(
            "%d of %d cells evaluated to #ERR", result.error_cells, result.total_cells
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
