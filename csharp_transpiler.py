#!/usr/bin/env python3
"""
C# to F# Transpiler

Translates a restricted subset of C# (using directives, one namespace,
classes with fields/properties/constructors/methods, enums, basic statements
and expressions) into F# source text.

Usage:
    python csharp_transpiler.py Sample.cs                 # Writes ./output/Sample.fs
    python csharp_transpiler.py Sample.cs -o mydir        # Custom output dir
    python csharp_transpiler.py Sample.cs --stdout        # Print instead of writing
    python csharp_transpiler.py Sample.cs --tokens        # Dump the token stream
    python csharp_transpiler.py --test                    # Run the built-in sample

Architecture:
    C# Source → CSharpLexer → Tokens → (drop whitespace/comments) → FSharpTranslator → .fs
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from csharp_lexer import Token, tokenize
from fsharp_translator import FSharpTranslator
from transpile_errors import TranspileError

logger = logging.getLogger(__name__)

# Default indentation width of the generated F#
INDENT_WIDTH = int(os.environ.get('CS2FS_INDENT_WIDTH', '4'))


SAMPLE_SOURCE = """\
using System;
using System.Collections.Generic;

namespace TestApp
{
    public enum Color { Red, Green = 5, Blue }

    public class Test
    {
        private int a;
        private int b;
        public int Add { get { return this.a + this.b; } }
        public string Name { get; set; }

        public Test(int a, int b)
        {
            this.a = a;
            this.b = b;
        }

        public void Test2()
        {
            while (this.a < this.b)
            {
                Console.WriteLine("a = {0}, b = {1}", this.a, this.b);
                this.a = this.a + 1;
            }
        }

        public string Test3(int a)
        {
            switch (a)
            {
                case 1:
                    return "one";
                case 2:
                case 3:
                    return "two or three";
                default:
                    return "other";
            }
        }
    }
}
"""


# =============================================================================
# C# Transpiler - Main Orchestrator
# =============================================================================

class CSharpTranspiler:
    """
    Main transpiler class that orchestrates the full pipeline.

    Can work with:
    - C# source files
    - Direct C# strings
    """

    def __init__(self, verbose: bool = False, indent_width: int = INDENT_WIDTH):
        self.verbose = verbose
        self.indent_unit = ' ' * indent_width

    def log(self, msg: str):
        """Log a progress message when verbose"""
        if self.verbose:
            logger.info("[TRANSPILER] %s", msg)

    def tokenize_string(self, source: str) -> List[Token]:
        """Tokenize C# source, keeping whitespace and comment tokens"""
        self.log("Lexing C# source...")
        tokens = tokenize(source)
        self.log(f"Generated {len(tokens)} tokens")
        return tokens

    def transpile_string(self, source: str) -> str:
        """Transpile a C# source string to F#"""
        tokens = self.tokenize_string(source)

        self.log("Translating tokens...")
        fsharp_code = FSharpTranslator(tokens, indent_unit=self.indent_unit).translate()
        self.log(f"Generated {len(fsharp_code.splitlines())} lines of F#")

        return fsharp_code

    def dump_tokens(self, source: str) -> str:
        """Render every token of the source, one per line"""
        return '\n'.join(token.describe() for token in self.tokenize_string(source)) + '\n'

    def transpile_file(self, filepath: str, output_dir: Optional[str] = None) -> Dict[str, Any]:
        """
        Transpile a C# file to an F# file.

        Args:
            filepath: Path to a .cs file
            output_dir: Output directory (default: ./output)

        Returns:
            Dictionary with results
        """
        filepath = Path(filepath)

        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        output_path = Path(output_dir) if output_dir else Path("./output")

        self.log(f"Reading C# file: {filepath}")
        source = filepath.read_text(encoding='utf-8')

        try:
            fsharp_code = self.transpile_string(source)
        except TranspileError as e:
            e.path = str(filepath)
            raise

        output_path.mkdir(parents=True, exist_ok=True)
        fsharp_file = output_path / f"{filepath.stem}.fs"
        fsharp_file.write_text(fsharp_code, encoding='utf-8')

        return {
            "source_file": str(filepath),
            "output_dir": str(output_path),
            "fsharp_file": str(fsharp_file),
            "success": True
        }


# =============================================================================
# CLI Interface
# =============================================================================

def main(argv: Optional[List[str]] = None):
    """Main entry point for CLI usage"""
    parser = argparse.ArgumentParser(
        description="Transpile C# files to F#",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s Sample.cs                  # Transpile to ./output/Sample.fs
  %(prog)s Sample.cs -o mydir         # Custom output directory
  %(prog)s Sample.cs --stdout         # Print F# instead of writing files
  %(prog)s Sample.cs --tokens         # Dump tokens instead of translating
  %(prog)s Sample.cs -v               # Verbose output
        """
    )

    parser.add_argument(
        "files",
        nargs="*",
        help="C# file(s) to transpile"
    )

    parser.add_argument(
        "-o", "--output",
        default="./output",
        help="Output directory (default: ./output)"
    )

    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Print generated F# to stdout instead of writing files"
    )

    parser.add_argument(
        "--tokens",
        action="store_true",
        help="Print the token stream of each file instead of translating"
    )

    parser.add_argument(
        "--indent",
        type=int,
        default=INDENT_WIDTH,
        help=f"Indentation width of generated code (default: {INDENT_WIDTH})"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print verbose debug information"
    )

    parser.add_argument(
        "--test",
        action="store_true",
        help="Run a quick test with sample C# code"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(name)s] %(message)s"
    )

    # Run test mode
    if args.test:
        return run_test(indent_width=args.indent)

    # Validate files are provided
    if not args.files:
        parser.error("the following arguments are required: files (use --test for demo)")

    # Process files
    transpiler = CSharpTranspiler(verbose=args.verbose, indent_width=args.indent)
    results = []

    for filepath in args.files:
        if not os.path.exists(filepath):
            print(f"Error: File not found: {filepath}", file=sys.stderr)
            results.append({"file": filepath, "success": False, "error": "not found"})
            continue

        try:
            if args.tokens:
                source = Path(filepath).read_text(encoding='utf-8')
                sys.stdout.write(transpiler.dump_tokens(source))
                results.append({"file": filepath, "success": True})
            elif args.stdout:
                source = Path(filepath).read_text(encoding='utf-8')
                sys.stdout.write(transpiler.transpile_string(source))
                results.append({"file": filepath, "success": True})
            else:
                print(f"Transpiling: {filepath}")
                result = transpiler.transpile_file(filepath, args.output)
                results.append(result)
                print(f"  Output: {result['fsharp_file']}")

        except TranspileError as e:
            if e.path is None:
                e.path = filepath
            print(f"  Error: {e.format()}", file=sys.stderr)
            results.append({"file": filepath, "success": False, "error": e.format()})

        except OSError as e:
            print(f"  Error: {e}", file=sys.stderr)
            if args.verbose:
                logger.exception("Failed to transpile %s", filepath)
            results.append({"file": filepath, "success": False, "error": str(e)})

    successful = sum(1 for r in results if r.get("success"))
    if not (args.stdout or args.tokens):
        # Summary
        print()
        print(f"Processed {len(results)} file(s), {successful} successful")

    return 0 if successful == len(results) else 1


def run_test(indent_width: int = INDENT_WIDTH):
    """Run a quick test of the transpiler"""
    print("Running transpiler test...")
    print()

    print("Input C#:")
    print("-" * 40)
    print(SAMPLE_SOURCE)
    print("-" * 40)
    print()

    transpiler = CSharpTranspiler(verbose=True, indent_width=indent_width)
    try:
        fsharp_code = transpiler.transpile_string(SAMPLE_SOURCE)
    except TranspileError as e:
        print(f"Error: {e.format()}", file=sys.stderr)
        return 1

    print()
    print("Generated F#:")
    print("-" * 40)
    print(fsharp_code)
    print("-" * 40)

    return 0


if __name__ == "__main__":
    sys.exit(main())
