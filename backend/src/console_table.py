from rich.console import Console
from rich.table import Table

console = Console()


def print_table(columns, rows, title=None):
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*row)
    console.print(table)
