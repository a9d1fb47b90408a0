"""
Command-line front ends for flatsql.
Runs a script file in batch mode, a single command, or an interactive console.
"""

import sys
import argparse
from typing import Optional

from flatsql.api import FlatSQL
from flatsql.config import settings
from flatsql.errors import FlatSQLError
from flatsql.executor import RunResult


PROMPT = 'flatsql> '
CONTINUATION_PROMPT = '    ...> '


def print_result(result: RunResult) -> None:
    """Print every message of a run; errors go to stderr."""
    for line in result.messages:
        if line.startswith('Error'):
            print(line, file=sys.stderr)
        else:
            print(line)


class Shell:
    """
    Interactive console.

    Lines are collected until one ends with ';', then the collected text is
    run as one program. Lines starting with '.' are console commands.
    """

    def __init__(self, database: FlatSQL):
        """
        Initialize the shell.

        Args:
            database: The database connection
        """
        self.db = database
        self.running = True
        self.buffer = []

    def run(self) -> None:
        """Run the interactive shell."""
        self.print_welcome()

        while self.running:
            try:
                line = input(CONTINUATION_PROMPT if self.buffer else PROMPT)
                self.handle_line(line)

            except KeyboardInterrupt:
                self.buffer = []
                print("\nUse .exit to quit")
                continue

            except EOFError:
                if self.buffer:
                    self.flush()
                print("\nGoodbye!")
                break

    def handle_line(self, line: str) -> None:
        stripped = line.strip()
        if not stripped:
            return

        if not self.buffer and stripped.startswith('.'):
            self.handle_special_command(stripped)
            return

        self.buffer.append(line)
        if stripped.endswith(';'):
            self.flush()

    def flush(self) -> None:
        """Run the collected lines as one program."""
        sql = '\n'.join(self.buffer)
        self.buffer = []
        self.execute_sql(sql)

    def print_welcome(self) -> None:
        """Print welcome message."""
        print("flatsql - SQL over a flat text file")
        print(f"Database: {self.db.filename}")
        print("End statements with ';' or enter .help for commands")
        print()

    def execute_sql(self, sql: str) -> RunResult:
        """
        Execute a program and print its output.

        Args:
            sql: The SQL text to execute
        """
        result = self.db.execute(sql)
        print_result(result)
        return result

    def handle_special_command(self, command: str) -> None:
        """
        Handle special shell commands (starting with .).

        Args:
            command: The special command
        """
        command = command.lower()

        if command == '.exit' or command == '.quit':
            self.running = False
            print("Goodbye!")

        elif command == '.help':
            self.print_help()

        elif command == '.tables':
            self.show_tables()

        elif command == '.schema':
            self.show_schema()

        else:
            print(f"Unknown command: {command}")
            print("Type .help for list of commands")

    def print_help(self) -> None:
        """Print help message."""
        print("Special commands:")
        print("  .help          Show this help message")
        print("  .tables        List all tables")
        print("  .schema        Show table schemas")
        print("  .exit          Exit the shell")
        print("  .quit          Exit the shell")
        print()
        print("Enter SQL statements ending with ';' to execute them")

    def show_tables(self) -> None:
        """Show all tables in the database."""
        tables = self.db.get_table_names()

        if not tables:
            print("(no tables)")
        else:
            for table in tables:
                print(table)

    def show_schema(self) -> None:
        """Show table schemas as CREATE TABLE statements."""
        tables = self.db.get_table_names()

        if not tables:
            print("(no tables)")
            return

        for table in tables:
            columns = ', '.join(
                f"{name} {col_type}" for name, col_type in self.db.get_schema(table).items()
            )
            print(f"CREATE TABLE {table} ({columns});")


def read_script(filename: str) -> str:
    with open(filename, 'r', encoding='utf-8') as f:
        return f.read()


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the command line.

    Args:
        args: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        description='flatsql - SQL over a flat text file',
        prog='flatsql'
    )
    parser.add_argument(
        '-d', '--database',
        default=None,
        help=f'Database file to open or create (default: {settings.DATABASE_FILE})'
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        '-f', '--file',
        nargs='?',
        const=settings.INPUT_FILE,
        help=f'Run a script file and exit (default script: {settings.INPUT_FILE})',
        metavar='SCRIPT'
    )
    mode.add_argument(
        '-c', '--command',
        help='Execute SQL text and exit',
        metavar='SQL'
    )

    if args is None:
        args = sys.argv[1:]

    parsed_args = parser.parse_args(args)

    sql = parsed_args.command
    if parsed_args.file is not None:
        try:
            sql = read_script(parsed_args.file)
        except OSError as e:
            print(f"Error reading {parsed_args.file}: {e}", file=sys.stderr)
            return 1

    try:
        db = FlatSQL(parsed_args.database)
    except FlatSQLError as e:
        print(f"Error opening database: {e}", file=sys.stderr)
        return 1

    try:
        # Batch mode
        if sql is not None:
            print(db.load_notice)
            result = db.execute(sql)
            print_result(result)
            return 0 if result.ok else 1

        # Interactive mode
        shell = Shell(db)
        shell.run()
        return 0

    finally:
        db.close()


if __name__ == '__main__':
    sys.exit(main())
