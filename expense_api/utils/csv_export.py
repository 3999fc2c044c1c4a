import csv
import io
from typing import Dict, Iterable

CSV_FIELDS = ["date", "amount", "currency", "category", "note"]


def expenses_to_csv(expenses: Iterable[Dict]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_FIELDS, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for e in expenses:
        writer.writerow({
            "date": e["date"],
            "amount": e["amount"],
            "currency": e.get("currency", ""),
            "category": e.get("category", ""),
            "note": e.get("note", ""),
        })
    return output.getvalue()


def export_filename(start_date=None, end_date=None) -> str:
    if start_date or end_date:
        return f"expenses_{start_date or 'start'}_{end_date or 'end'}.csv"
    return "expenses.csv"
