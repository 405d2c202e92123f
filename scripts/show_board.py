"""Render the production board from a JSON export of the order store.

The file holds a list of order rows, as returned by the store's select.
"""

import argparse
import json

from rich.console import Console
from rich.table import Table

from order_tracking.projector import project_stages
from order_tracking.shared import Order, Stage

STAGE_TITLES = {
    Stage.NEW: "Novos",
    Stage.INSUMOS_PENDING: "Insumos",
    Stage.IN_PRODUCTION: "Em Produção",
    Stage.SHIPPING: "Expedição",
    Stage.DISPATCHED: "Despachado",
}


def main() -> None:
    parser = argparse.ArgumentParser(description="Show orders grouped by stage")
    parser.add_argument("orders_file", help="JSON file with a list of order rows")
    args = parser.parse_args()

    with open(args.orders_file, encoding="utf-8") as fh:
        rows = json.load(fh)
    orders = [Order.from_record(row) for row in rows]
    board = project_stages(orders)

    console = Console()
    for stage, groups in board.items():
        table = Table(title=f"{STAGE_TITLES[stage]} ({len(groups)})", expand=True)
        table.add_column("Pedido", style="bold")
        table.add_column("Data")
        table.add_column("Itens")
        for group in groups:
            date = group.representative_date
            items = "\n".join(
                " / ".join(
                    f"{name}: {value}"
                    for name, value in (
                        ("Cor", o.color),
                        ("Tamanho", o.size),
                        ("Espelho", o.mirror),
                    )
                    if value
                )
                or o.id
                for o in group.orders
            )
            table.add_row(
                f"#{group.label}",
                date.strftime("%d/%m/%Y") if date else "-",
                items,
            )
        console.print(table)


if __name__ == "__main__":
    main()
